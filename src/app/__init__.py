"""App — coração do serviço: orquestração, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (settings, container, logging)
- coordinators/: fluxos com prazo (dispatcher do webhook)
- use_cases/: casos de uso (processamento idempotente de notificações)
- services/: rate limit, eventos de segurança, tópicos, recuperação
- infra/: implementações concretas de IO (cache, alertas, tasks)
- protocols/: contratos/interfaces
- domain/: modelos de notificação, markers e eventos de segurança
- observability/: correlation id e métricas em log estruturado

Padrão: app executa; api adapta; config configura; utils apoia.
"""
