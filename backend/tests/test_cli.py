"""
CLI command tests (flask system / settings / invoices groups).
"""

from billing.models import Category
from billing.services import invoice_service
from billing.services.settings_service import SettingsRepository


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init"])
    second = runner.invoke(args=["system", "init"])

    assert first.exit_code == 0, first.output
    assert "Seeded 10 settings, 10 categories" in first.output
    assert "Seeded 0 settings, 0 categories" in second.output
    assert db_session.query(Category).count() == 10


def test_settings_show_masks_password(app, settings, db_session):
    settings.set("gmail_app_password", "hunter22")
    db_session.commit()

    result = app.test_cli_runner().invoke(args=["settings", "show"])

    assert result.exit_code == 0
    assert "hunter22" not in result.output
    assert "invoice_prefix" in result.output


def test_settings_set_validates_counter(app, settings):
    runner = app.test_cli_runner()

    ok = runner.invoke(args=["settings", "set", "invoice_prefix", "INV"])
    bad = runner.invoke(args=["settings", "set", "invoice_counter", "zero"])

    assert ok.exit_code == 0
    assert bad.exit_code != 0
    assert SettingsRepository().get("invoice_prefix") == "INV"


def test_invoices_list_and_delete(app, settings, product):
    created = invoice_service.create_invoice({"items": [{"product_id": product.id, "quantity": 1}]})
    invoice_id = created["invoice"]["id"]
    runner = app.test_cli_runner()

    listed = runner.invoke(args=["invoices", "list", "--status", "paid"])
    assert "GKS-00001" in listed.output

    deleted = runner.invoke(args=["invoices", "delete", str(invoice_id), "--yes"])
    assert "reversed and deleted" in deleted.output

    again = runner.invoke(args=["invoices", "delete", str(invoice_id), "--yes"])
    assert "nothing to do" in again.output

    empty = runner.invoke(args=["invoices", "list"])
    assert "No invoices found." in empty.output
