import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

TABLE_NAME = "raffle_numbers"
DEFAULT_TIMEOUT = 10.0


# ============================
# Erros
# ============================
class SoldNumbersError(Exception):
    """Base para falhas ao consultar os números vendidos."""


class ConfigurationMissing(SoldNumbersError):
    pass


class FetchFailed(SoldNumbersError):
    pass


# ============================
# Cliente Supabase (PostgREST)
# ============================
class RaffleNumbersClient:
    """Leitura da tabela ``raffle_numbers`` pela API REST do Supabase."""

    def __init__(self, url: str, key: str, timeout: float = DEFAULT_TIMEOUT, transport=None):
        if not url or not key:
            raise ConfigurationMissing("SUPABASE_URL e SUPABASE_ANON_KEY são obrigatórios")
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{TABLE_NAME}"

    def _headers(self):
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }

    async def fetch_sold_numbers(self) -> frozenset:
        params = {"select": "number", "sold": "eq.true"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.endpoint, params=params, headers=self._headers())
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPError as e:
            raise FetchFailed(f"consulta a {TABLE_NAME} falhou: {e}") from e
        except ValueError as e:
            raise FetchFailed(f"resposta inválida de {TABLE_NAME}: {e}") from e

        return parse_rows(rows)


def parse_rows(rows) -> frozenset:
    # Formato esperado: [{"number": "001"}, ...]
    if not isinstance(rows, list):
        raise FetchFailed(f"resposta inesperada de {TABLE_NAME}: {type(rows).__name__}")
    numbers = set()
    for row in rows:
        number = row.get("number") if isinstance(row, dict) else None
        if not isinstance(number, str):
            raise FetchFailed(f"registro sem campo 'number': {row!r}")
        numbers.add(number)
    return frozenset(numbers)


def create_client(url: Optional[str], key: Optional[str], timeout: float = DEFAULT_TIMEOUT,
                  transport=None) -> Optional[RaffleNumbersClient]:
    """Retorna ``None`` quando faltam as credenciais (estado tratado pela grade)."""
    if not url or not key:
        logger.warning("Supabase não configurado: SUPABASE_URL/SUPABASE_ANON_KEY ausentes")
        return None
    return RaffleNumbersClient(url, key, timeout=timeout, transport=transport)
