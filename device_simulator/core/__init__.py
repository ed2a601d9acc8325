"""Núcleo del simulador: modelos de dominio y transportes."""
