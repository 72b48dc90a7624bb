import importlib


def test_version_fallback_to_unknown(monkeypatch):
    import importlib.metadata as md

    def _raise(_name):
        raise md.PackageNotFoundError

    monkeypatch.setattr(md, "version", _raise, raising=True)

    import inidict._version_info
    importlib.reload(inidict._version_info)
    assert inidict._version_info.__version__ == "unknown"

    monkeypatch.undo()
    importlib.reload(inidict._version_info)
    assert inidict._version_info.__version__ != "unknown"
