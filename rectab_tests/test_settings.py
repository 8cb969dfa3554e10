import yaml

from rectab.letterhead import Letterhead
from rectab.presenter import Pagination
from rectab.settings import LocalSettings, default_settings_file


def test_default_file_from_environment(isolated_settings):
    assert default_settings_file() == str(isolated_settings)
    assert LocalSettings().file_path == str(isolated_settings)


def test_missing_file():
    stg = LocalSettings()
    assert stg.get_setting("table.page_size") is None
    assert stg.get_setting("table.page_size", 10) == 10


def test_set_and_get(mocker):
    mocker.patch.object(LocalSettings, "save_settings")
    stg = LocalSettings()
    stg.set_setting("export.directory", "/tmp/out")
    stg["table.page_size"] = 20
    assert stg.get_setting("export.directory") == "/tmp/out"
    assert stg["table.page_size"] == 20
    assert stg.get_setting("export.directory.more", "x") == "x"
    assert LocalSettings.save_settings.call_count == 2


def test_set_same_value_does_not_save(mocker):
    mocker.patch.object(LocalSettings, "save_settings")
    stg = LocalSettings()
    stg.set_setting("a.b", 1)
    stg.set_setting("a.b", 1)
    assert LocalSettings.save_settings.call_count == 1


def test_save_now_and_reload(isolated_settings):
    stg = LocalSettings()
    stg.set_setting("letterhead.company", "ACME")
    stg.save_now()

    with open(isolated_settings, encoding="utf-8") as f:
        assert yaml.safe_load(f) == {"letterhead": {"company": "ACME"}}

    again = LocalSettings()
    assert again.get_setting("letterhead.company") == "ACME"


def test_read_only(isolated_settings):
    stg = LocalSettings(read_only=True)
    stg.set_setting("a", 1)
    stg.save_now()
    assert stg.get_setting("a") == 1
    assert not isolated_settings.exists()


def test_not_a_mapping(isolated_settings, caplog):
    isolated_settings.parent.mkdir(parents=True)
    isolated_settings.write_text("- 1\n- 2\n", encoding="utf-8")
    stg = LocalSettings()
    assert stg.get_setting("a") is None
    assert "does not contain a mapping" in caplog.text


def test_letterhead_overrides(isolated_settings):
    isolated_settings.parent.mkdir(parents=True)
    isolated_settings.write_text(
        "letterhead:\n  company: ACME LABS\n  accent: '#FF0000'\n",
        encoding="utf-8",
    )
    letterhead = Letterhead.from_settings(
        LocalSettings().get_setting("letterhead")
    )
    assert letterhead.company == "ACME LABS"
    assert letterhead.accent == "#FF0000"
    assert letterhead.phone == Letterhead().phone


def test_pagination_from_settings(isolated_settings, caplog):
    isolated_settings.parent.mkdir(parents=True)
    isolated_settings.write_text(
        "table:\n  page_size: 25\n  page_size_options: [25, 75]\n",
        encoding="utf-8",
    )
    pagination = Pagination.from_settings(LocalSettings())
    assert pagination.page_size == 25
    assert pagination.options == (25, 75)

    isolated_settings.write_text("table:\n  page_size: 33\n", encoding="utf-8")
    pagination = Pagination.from_settings(LocalSettings())
    assert pagination.page_size == 10
    assert "is not one of" in caplog.text
