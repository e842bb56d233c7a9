"""Configuração do pytest para o serviço de webhooks do Mercado Livre."""

import sys
from pathlib import Path

import pytest

# Adiciona src/ ao PYTHONPATH para permitir imports absolutos
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from app.infra.stores import MemoryCacheStore  # noqa: E402


@pytest.fixture
def memory_cache() -> MemoryCacheStore:
    """Cache em memória isolado por teste."""
    return MemoryCacheStore()


@pytest.fixture
async def seeded_cache(memory_cache: MemoryCacheStore) -> MemoryCacheStore:
    """Cache com credenciais válidas do tenant 123."""
    await memory_cache.set("user:123", {"token": "APP_USR-test-token", "user_id": 123})
    return memory_cache
