"""Basic smoke tests for the interview package layout."""

def test_imports():
    import api_server  # noqa: F401
    from config.settings import settings

    assert settings.DB_PATH.endswith(".db")
