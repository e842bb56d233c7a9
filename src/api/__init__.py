"""API — camada de borda do Mercado Livre.

Responsabilidades:
- Receber notificações do webhook
- Autenticar origem e credenciais
- Validar o envelope e convertê-lo em modelo interno
- Consultar a API do marketplace

Subpastas:
- connectors/: adapters HTTP e do webhook
- routes/: endpoints HTTP (webhook, recuperação, segurança, health)

NÃO PODE conter: regras de idempotência, orquestração de use cases.
"""
