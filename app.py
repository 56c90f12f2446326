import os
import logging
from dataclasses import dataclass, field
from typing import Optional
from flask import Flask, request, jsonify, current_app
from flask import render_template_string

from board import TicketBoard, TOTAL_NUMBERS, build_contact_link, format_number
from sold_numbers import create_client, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

# ============================
# Config
# ============================
DEFAULT_PRIZES = (
    "Corte de pelo + limpieza facial ✂️✨",
    "Una botella de whisky 🥃",
    "Otros premios donados",
)


def _split_list(value):
    return tuple(item.strip() for item in value.split(";") if item.strip())


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_timeout: float = DEFAULT_TIMEOUT
    whatsapp_phone: str = "+56957199022"
    raffle_title: str = "Rifa a Beneficio"
    beneficiary_name: str = "Sandry Perdomo"
    beneficiary_image: str = "https://i.postimg.cc/NjMQ91v4/sandry-benefic2.jpg"
    beneficiary_text: str = (
        "Fundación Esperanza apoya a niños con condiciones críticas de salud. "
        "Tu aporte ayuda a costear tratamientos y cuidados."
    )
    prizes: tuple = field(default=DEFAULT_PRIZES)
    payment_amount: str = "2,000 CLP"
    payment_methods: tuple = ()
    raffle_date: str = "12 de Septiembre 2025"
    host: str = "0.0.0.0"
    port: int = 8083
    log_level: str = "INFO"

    @classmethod
    def from_env(cls):
        defaults = cls()
        return cls(
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY") or None,
            supabase_timeout=float(os.getenv("SUPABASE_TIMEOUT", str(DEFAULT_TIMEOUT))),
            whatsapp_phone=os.getenv("WHATSAPP_PHONE", defaults.whatsapp_phone),
            raffle_title=os.getenv("RAFFLE_TITLE", defaults.raffle_title),
            beneficiary_name=os.getenv("BENEFICIARY_NAME", defaults.beneficiary_name),
            beneficiary_image=os.getenv("BENEFICIARY_IMAGE", defaults.beneficiary_image),
            beneficiary_text=os.getenv("BENEFICIARY_TEXT", defaults.beneficiary_text),
            prizes=_split_list(os.getenv("PRIZES", "")) or defaults.prizes,
            payment_amount=os.getenv("PAYMENT_AMOUNT", defaults.payment_amount),
            payment_methods=_split_list(os.getenv("PAYMENT_METHODS", "")),
            raffle_date=os.getenv("RAFFLE_DATE", defaults.raffle_date),
            host=os.getenv("HOST", defaults.host),
            port=int(os.getenv("PORT", str(defaults.port))),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )


def configure_logging(level="INFO"):
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, str(level).upper(), logging.INFO),
    )
    # Menos ruído do cliente HTTP
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ============================
# Templates (Tailwind + mobile)
# ============================
BASE_HEAD = """
<!doctype html>
<html lang="es">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ settings.raffle_title }} {{ settings.beneficiary_name }}</title>
<script src="https://cdn.tailwindcss.com"></script>
<style>
  .ticket {
    display: flex;
    align-items: center;
    justify-content: center;
    border-radius: 0.375rem;
    border-width: 1px;
    padding: 0.25rem 0.5rem;
    font-family: ui-monospace, monospace;
    font-size: 0.875rem;
    transition: all 160ms ease;
    user-select: none;
  }
  .ticket[data-status="available"] {
    background: #ffffff;
    color: #111827;
  }
  .ticket[data-status="available"]:hover {
    background: #dbeafe;
  }
  .ticket[data-status="selected"] {
    background: #2563eb;
    color: #ffffff;
    box-shadow: 0 4px 8px rgba(37, 99, 235, 0.3);
  }
  .ticket[data-status="sold"] {
    background: #d1d5db;
    color: #4b5563;
    cursor: not-allowed;
  }
</style>
</head>
<body class="min-h-screen bg-white text-gray-900">
"""

FOOTER = """
</body>
</html>
"""

ERROR_TMPL = BASE_HEAD + """
<main class="min-h-screen flex items-center justify-center p-4">
  <p class="text-red-600 font-semibold text-center">{{ error }}</p>
</main>
""" + FOOTER

INDEX_TMPL = BASE_HEAD + """
<main class="min-h-screen flex flex-col items-center p-4 max-w-7xl mx-auto">
  <header class="mb-6 text-center">
    <h1 class="text-3xl sm:text-4xl font-extrabold tracking-tight" aria-label="Raffle to benefit {{ settings.beneficiary_name }}">
      {{ settings.raffle_title }} <span class="text-blue-600">{{ settings.beneficiary_name }}</span> 💙.
    </h1>
  </header>

  <section aria-labelledby="beneficiary-title" class="flex flex-col sm:flex-row items-center sm:items-start gap-6 mb-8 max-w-4xl">
    <img src="{{ settings.beneficiary_image }}" alt="Photo representing {{ settings.beneficiary_name }}" class="w-full sm:w-72 rounded-lg object-cover shadow-md" loading="lazy" />
    <div>
      <h2 id="beneficiary-title" class="text-xl font-semibold mb-2">¿Por qué participar?</h2>
      <p class="text-gray-700 mb-4">{{ settings.beneficiary_text }}</p>
      <h3 class="text-lg font-semibold mb-2">Premios</h3>
      <ul class="list-disc list-inside text-gray-700">
        {% for prize in settings.prizes %}
        <li>{{ prize }}</li>
        {% endfor %}
      </ul>
    </div>
  </section>

  <section aria-labelledby="payment-title" class="mb-8 w-full max-w-4xl">
    <h2 id="payment-title" class="text-xl font-semibold mb-4">Información para aportar</h2>
    <p class="mb-2">Valor del Número: <strong class="text-2xl text-blue-700 font-extrabold">${{ settings.payment_amount }}</strong></p>
    {% if settings.payment_methods %}
    <ul class="list-disc list-inside text-gray-700 mb-2">
      {% for method in settings.payment_methods %}
      <li>{{ method }}</li>
      {% endfor %}
    </ul>
    {% endif %}
    <p class="text-xs text-gray-500 italic">Fecha Rifa: {{ settings.raffle_date }}.</p>
  </section>

  <section aria-labelledby="contact-title" class="mb-8 w-full max-w-4xl flex flex-col items-center">
    <h2 id="contact-title" class="text-xl font-semibold mb-4">Contacto para cualquier Información</h2>
    <a href="{{ board.contact_link }}" target="_blank" rel="noopener noreferrer" role="button"
       aria-label="{% if board.selected %}Contact via WhatsApp to buy number {{ board.selected }}{% else %}Contact via WhatsApp{% endif %}"
       class="inline-flex items-center gap-2 bg-green-500 hover:bg-green-600 text-white font-semibold rounded-lg px-6 py-3 transition-colors"
       data-contact-link data-base="{{ contact_base }}" data-message="{{ board.message }}">
      <span data-contact-text>WhatsApp{% if board.selected %} · Nº {{ board.selected }}{% endif %}</span>
    </a>
  </section>

  <section aria-labelledby="numbers-title" class="w-full max-w-5xl" role="region" aria-live="polite">
    <h2 id="numbers-title" class="text-xl font-semibold mb-2 text-center">Verifica los numeros disponibles</h2>
    <p class="text-sm text-gray-600 text-center mb-4">Total: {{ total }} · Disponibles: {{ board.free_count }} · Vendidos: {{ board.sold_count }}</p>
    <div role="grid" aria-label="Raffle numbers" class="grid grid-cols-8 sm:grid-cols-16 gap-2">
      {% for cell in board.cells() %}
        {% if cell.interactive %}
        <button type="button" class="ticket" role="gridcell" data-status="{{ cell.status }}" data-number="{{ cell.number }}"
                aria-label="{{ cell.number }} - Available"{% if cell.status == 'selected' %} aria-selected="true"{% endif %} title="Disponible">{{ cell.number }}</button>
        {% else %}
        <button type="button" class="ticket" role="gridcell" data-status="sold" data-number="{{ cell.number }}" aria-label="{{ cell.number }} - Sold" title="Vendido" disabled>{{ cell.number }}</button>
        {% endif %}
      {% endfor %}
    </div>
  </section>
</main>
<script>
document.addEventListener('DOMContentLoaded', function () {
  var contact = document.querySelector('[data-contact-link]');
  var contactText = document.querySelector('[data-contact-text]');

  document.querySelectorAll('.ticket').forEach(function (cell) {
    cell.addEventListener('click', function () {
      // Número vendido não muda a seleção
      if (cell.getAttribute('data-status') === 'sold') return;
      var number = cell.getAttribute('data-number');
      document.querySelectorAll('.ticket[aria-selected="true"]').forEach(function (prev) {
        prev.setAttribute('data-status', 'available');
        prev.removeAttribute('aria-selected');
      });
      cell.setAttribute('data-status', 'selected');
      cell.setAttribute('aria-selected', 'true');
      if (contact) {
        var text = contact.getAttribute('data-message').replace('{number}', number);
        contact.href = contact.getAttribute('data-base') + '?text=' + encodeURIComponent(text);
        contact.setAttribute('aria-label', 'Contact via WhatsApp to buy number ' + number);
      }
      if (contactText) {
        contactText.textContent = 'WhatsApp · Nº ' + number;
      }
      // Mantém a escolha se a página for recarregada
      history.replaceState(null, '', '?numero=' + number);
    });
  });
});
</script>
""" + FOOTER


# ============================
# App
# ============================
_FROM_SETTINGS = object()


def _normalize_number(value):
    # Aceita "11" ou "011"
    value = (value or "").strip()
    if not value.isdigit():
        return None
    n = int(value)
    if n < 1 or n > TOTAL_NUMBERS:
        return None
    return format_number(n)


async def load_board():
    settings = current_app.config["RAFFLE_SETTINGS"]
    board = TicketBoard(current_app.extensions["raffle_client"], settings.whatsapp_phone)
    await board.load_sold_tickets()
    return board


def create_app(settings=None, client=_FROM_SETTINGS):
    settings = settings or Settings.from_env()
    if client is _FROM_SETTINGS:
        client = create_client(settings.supabase_url, settings.supabase_anon_key,
                               timeout=settings.supabase_timeout)

    app = Flask(__name__)
    app.config["RAFFLE_SETTINGS"] = settings
    app.extensions["raffle_client"] = client

    @app.route("/")
    async def index():
        board = await load_board()
        if board.error:
            return render_template_string(ERROR_TMPL, error=board.error, settings=settings)
        number = _normalize_number(request.args.get("numero"))
        if number is not None and not board.select_ticket(number):
            logger.info("Número %s já vendido, seleção ignorada", number)
        return render_template_string(
            INDEX_TMPL,
            board=board,
            settings=settings,
            total=TOTAL_NUMBERS,
            contact_base=build_contact_link(settings.whatsapp_phone),
        )

    @app.route("/tickets/status/<int:number>")
    async def ticket_status(number):
        if number < 1 or number > TOTAL_NUMBERS:
            return jsonify({"error": "invalid"}), 404
        board = await load_board()
        if board.error:
            return jsonify({"error": board.error}), 503
        ticket = format_number(number)
        return jsonify({"number": ticket, "status": "sold" if board.is_sold(ticket) else "free"})

    return app


app = create_app()

# ============================
# Exec
# ============================
if __name__ == "__main__":
    _settings = app.config["RAFFLE_SETTINGS"]
    configure_logging(_settings.log_level)
    app.run(host=_settings.host, port=_settings.port)
