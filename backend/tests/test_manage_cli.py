import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from marketlink.services.account_store import AccountStore
from marketlink.services.provider_store import SEED_PROVIDERS, ProviderStore
from scripts import manage


def test_seed_and_stats(tmp_path, capsys):
    db_path = str(tmp_path / "cli.sqlite3")
    assert manage.main(["--db", db_path, "seed"]) == 0
    assert manage.main(["--db", db_path, "seed"]) == 0
    capsys.readouterr()

    assert manage.main(["--db", db_path, "stats"]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["total"] == len(SEED_PROVIDERS)
    assert stats["active"] == len(SEED_PROVIDERS)
    assert stats["pending"] == 0


def test_link_owners_creates_provider_users(tmp_path, capsys):
    db_path = str(tmp_path / "cli.sqlite3")
    manage.main(["--db", db_path, "seed"])
    assert manage.main(["--db", db_path, "link-owners"]) == 0
    assert f"Linked {len(SEED_PROVIDERS)} provider(s)" in capsys.readouterr().out

    accounts = AccountStore(db_path=db_path)
    providers = ProviderStore(db_path=db_path, seed_demo=False)
    assert providers.list_unowned_providers() == []
    for item in SEED_PROVIDERS:
        user = accounts.get_user_by_email(item["email"])
        assert user is not None
        assert providers.get_owned_provider(user.id).email == item["email"]


def test_create_admin(tmp_path, capsys):
    db_path = str(tmp_path / "cli.sqlite3")
    assert manage.main(["--db", db_path, "create-admin", "Ops@Example.com"]) == 0
    assert AccountStore(db_path=db_path).get_user_by_email("ops@example.com").role == "admin"

    assert manage.main(["--db", db_path, "create-admin", "not-an-email"]) == 1
    assert "error:" in capsys.readouterr().err
