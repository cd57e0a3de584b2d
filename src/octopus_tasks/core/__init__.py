"""Ports and the space context guard."""
