import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from sold_numbers import ConfigurationMissing, SoldNumbersError

logger = logging.getLogger(__name__)

TOTAL_NUMBERS = 500
WHATSAPP_BASE = "https://wa.me"
PURCHASE_MESSAGE = "Hello, I want to buy the number {number}"

MISSING_CONFIG_MESSAGE = "Supabase environment variables are missing."
FETCH_FAILED_MESSAGE = "Failed to fetch sold numbers."

SOLD = "sold"
SELECTED = "selected"
AVAILABLE = "available"


def format_number(n: int) -> str:
    if n < 1 or n > TOTAL_NUMBERS:
        raise ValueError(f"número fora do intervalo 1..{TOTAL_NUMBERS}: {n}")
    return f"{n:03d}"


def ticket_numbers():
    return [format_number(n) for n in range(1, TOTAL_NUMBERS + 1)]


def build_contact_link(phone: str, selection: Optional[str] = None,
                       message: str = PURCHASE_MESSAGE) -> str:
    if selection:
        text = quote(message.format(number=selection))
        return f"{WHATSAPP_BASE}/{phone}?text={text}"
    return f"{WHATSAPP_BASE}/{phone}"


@dataclass(frozen=True)
class TicketCell:
    number: str
    status: str

    @property
    def interactive(self) -> bool:
        return self.status != SOLD


class TicketBoard:
    """Estado da grade: números vendidos, número escolhido e erro de carga.

    Um board por carregamento de página. ``client`` pode ser ``None`` quando o
    Supabase não está configurado; nesse caso a grade mostra só o erro.
    """

    def __init__(self, client, phone: str, message: str = PURCHASE_MESSAGE):
        self.client = client
        self.phone = phone
        self.message = message
        self.sold = frozenset()
        self.selected = None
        self.error = None
        self.loading = True
        self._loaded = False

    async def load_sold_tickets(self):
        if self._loaded:
            return
        self._loaded = True
        self.loading = True
        try:
            if self.client is None:
                raise ConfigurationMissing("cliente Supabase não configurado")
            sold = await self.client.fetch_sold_numbers()
        except ConfigurationMissing as e:
            logger.error("Erro ao buscar números vendidos: %s", e)
            self.error = MISSING_CONFIG_MESSAGE
            self.sold = frozenset()
        except SoldNumbersError as e:
            logger.error("Erro ao buscar números vendidos: %s", e)
            self.error = FETCH_FAILED_MESSAGE
            self.sold = frozenset()
        else:
            self.sold = frozenset(sold)
            self.error = None
            logger.debug("%d números vendidos carregados", len(self.sold))
        finally:
            self.loading = False

    def select_ticket(self, number: str) -> bool:
        # Número vendido (ou inválido) não muda a seleção
        if number in self.sold or number not in _VALID_NUMBERS:
            return False
        self.selected = number
        return True

    def is_sold(self, number: str) -> bool:
        return number in self.sold

    @property
    def contact_link(self) -> str:
        return build_contact_link(self.phone, self.selected, self.message)

    def cells(self):
        result = []
        for number in ticket_numbers():
            if number in self.sold:
                status = SOLD
            elif number == self.selected:
                status = SELECTED
            else:
                status = AVAILABLE
            result.append(TicketCell(number, status))
        return result

    @property
    def sold_count(self) -> int:
        return sum(1 for n in self.sold if n in _VALID_NUMBERS)

    @property
    def free_count(self) -> int:
        return TOTAL_NUMBERS - self.sold_count


_VALID_NUMBERS = frozenset(ticket_numbers())
