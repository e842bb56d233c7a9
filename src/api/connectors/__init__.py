"""Connectors — adapters de borda para APIs externas.

Estrutura:
- mercadolivre/: webhook e API REST do Mercado Livre
"""

__all__: list[str] = []
