from prettynode.settings import PrettyNodeSettings, load_settings


def test_defaults(monkeypatch):
    for var in ("NO_COLOR", "PRETTY_NODE_NO_COLOR", "PRETTY_NODE_ASCII"):
        monkeypatch.delenv(var, raising=False)
    s = PrettyNodeSettings()
    assert s.no_color is False
    assert s.ascii is False
    assert s.max_resolution_hops == 32
    assert s.icon("module") == "📦"


def test_no_color_presence_flag(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "")
    assert PrettyNodeSettings().no_color is True


def test_prefixed_flags(monkeypatch):
    monkeypatch.setenv("PRETTY_NODE_ASCII", "1")
    monkeypatch.setenv("PRETTY_NODE_MAX_RESOLUTION_HOPS", "5")
    s = PrettyNodeSettings()
    assert s.ascii is True
    assert s.max_resolution_hops == 5
    assert s.icon("function") == "fn"


def test_false_strings_disable_flags(monkeypatch):
    monkeypatch.setenv("PRETTY_NODE_ASCII", "false")
    assert PrettyNodeSettings().ascii is False


def test_icon_override(monkeypatch):
    monkeypatch.setenv("PRETTY_NODE_CLASS_ICON", "C")
    s = PrettyNodeSettings(ascii=True)
    assert s.icon("class") == "C"
    assert s.icon("type") == "type"


def test_load_settings_overrides(monkeypatch):
    monkeypatch.setenv("PRETTY_NODE_DEBUG", "1")
    assert load_settings().debug is True
    assert load_settings(debug=False).debug is False
    # None means "not given on the command line".
    assert load_settings(debug=None).debug is True


def test_load_settings_custom_prefix(monkeypatch):
    monkeypatch.setenv("MYTOOL_WALK_DEPTH", "4")
    assert load_settings(env_prefix="MYTOOL_").walk_depth == 4
