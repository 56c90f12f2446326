import pytest

from app import Settings, create_app
from board import FETCH_FAILED_MESSAGE, MISSING_CONFIG_MESSAGE
from tests.fakes import PHONE


def test_index_marks_sold_numbers(client, fake_client):
    response = client.get("/")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'aria-label="001 - Sold"' in html
    assert 'aria-label="250 - Sold"' in html
    assert html.count('role="gridcell" data-status="sold"') == 2
    assert html.count('role="gridcell" data-status="available"') == 498
    assert "Disponibles: 498 · Vendidos: 2" in html
    assert fake_client.calls == 1


def test_grid_selection_happens_in_browser(client, fake_client):
    html = client.get("/").get_data(as_text=True)

    # Células não recarregam a página: seleção fica no script da grade
    assert 'href="/?numero=' not in html
    assert html.count('class="ticket" role="gridcell"') == 500
    assert 'data-number="011"' in html
    assert f'data-base="https://wa.me/{PHONE}"' in html
    assert 'data-message="Hello, I want to buy the number {number}"' in html
    assert "addEventListener('click'" in html
    assert "=== 'sold') return" in html
    assert fake_client.calls == 1


def test_sold_numbers_fetched_once_per_page_load(client, fake_client):
    client.get("/?numero=011")

    assert fake_client.calls == 1


def test_index_has_no_loading_placeholder(client):
    assert "Loading numbers" not in client.get("/").get_data(as_text=True)


def test_index_without_selection_links_bare_contact(client):
    html = client.get("/").get_data(as_text=True)

    assert f'href="https://wa.me/{PHONE}"' in html
    assert f'href="https://wa.me/{PHONE}?text=' not in html


def test_index_selects_available_number(client):
    html = client.get("/?numero=011").get_data(as_text=True)

    assert f"https://wa.me/{PHONE}?text=Hello%2C%20I%20want%20to%20buy%20the%20number%20011" in html
    assert html.count('role="gridcell" data-status="selected"') == 1
    assert "Contact via WhatsApp to buy number 011" in html


def test_index_accepts_unpadded_number(client):
    html = client.get("/?numero=11").get_data(as_text=True)

    assert "number%20011" in html


def test_index_ignores_sold_number(client):
    html = client.get("/?numero=250").get_data(as_text=True)

    assert f'href="https://wa.me/{PHONE}?text=' not in html
    assert 'role="gridcell" data-status="selected"' not in html


@pytest.mark.parametrize("value", ["abc", "0", "501", ""])
def test_index_ignores_invalid_number(client, value):
    response = client.get(f"/?numero={value}")

    assert response.status_code == 200
    assert 'role="gridcell" data-status="selected"' not in response.get_data(as_text=True)


def test_index_shows_only_error_when_fetch_fails(settings, failing_client):
    client = create_app(settings, client=failing_client).test_client()

    html = client.get("/").get_data(as_text=True)

    assert FETCH_FAILED_MESSAGE in html
    assert 'role="grid"' not in html
    assert "data-contact-link" not in html


def test_index_shows_error_when_supabase_not_configured(settings):
    client = create_app(settings).test_client()

    html = client.get("/").get_data(as_text=True)

    assert MISSING_CONFIG_MESSAGE in html
    assert 'role="grid"' not in html


def test_ticket_status(client):
    assert client.get("/tickets/status/250").get_json() == {"number": "250", "status": "sold"}
    assert client.get("/tickets/status/12").get_json() == {"number": "012", "status": "free"}


def test_ticket_status_out_of_range(client):
    response = client.get("/tickets/status/501")

    assert response.status_code == 404
    assert response.get_json() == {"error": "invalid"}


def test_ticket_status_when_fetch_fails(settings, failing_client):
    client = create_app(settings, client=failing_client).test_client()

    response = client.get("/tickets/status/1")

    assert response.status_code == 503
    assert response.get_json() == {"error": FETCH_FAILED_MESSAGE}


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("WHATSAPP_PHONE", "+5491100000000")
    monkeypatch.setenv("PAYMENT_METHODS", "Banco: Demo; Cuenta: 123 ;")
    monkeypatch.setenv("PORT", "9000")

    settings = Settings.from_env()

    assert settings.supabase_url == "https://demo.supabase.co"
    assert settings.supabase_anon_key == "anon"
    assert settings.whatsapp_phone == "+5491100000000"
    assert settings.payment_methods == ("Banco: Demo", "Cuenta: 123")
    assert settings.port == 9000


def test_settings_from_env_without_supabase(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "")

    settings = Settings.from_env()

    assert settings.supabase_url is None
    assert settings.supabase_anon_key is None
