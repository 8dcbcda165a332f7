import pytest


@pytest.fixture(autouse=True)
def widget_snapshot_root(settings, tmp_path):
    settings.WIDGET_SNAPSHOT = {**settings.WIDGET_SNAPSHOT, "ROOT": str(tmp_path / "app-groups")}
    return tmp_path / "app-groups"
