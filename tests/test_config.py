import pytest

from tracescope import config
from tracescope.config import TraceConfigError, TraceSettings


def test_defaults():
    settings = TraceSettings(sample_rate=100.0)

    assert settings.horizontal_scale == 1
    assert settings.vertical_scale == 1.0
    assert settings.grid_width == 1.0
    assert settings.horizontal_grid_lines == 0
    assert settings.vertical_grid_lines == 0
    assert settings.grid_color == config.COLOR_GRID
    assert settings.trace_color == config.COLOR_TRACE


def test_horizontal_shift():
    settings = TraceSettings(sample_rate=50.0, horizontal_scale=2)

    assert settings.horizontal_shift == pytest.approx(0.01)
    assert settings.samples_per_window == 100


@pytest.mark.parametrize("kwargs", [
    {'sample_rate': 0},
    {'sample_rate': -10.0},
    {'sample_rate': float('nan')},
    {'sample_rate': 100.0, 'horizontal_scale': 0},
    {'sample_rate': 100.0, 'horizontal_scale': True},
    {'sample_rate': 100.0, 'vertical_scale': float('inf')},
    {'sample_rate': 100.0, 'grid_width': 0},
    {'sample_rate': 100.0, 'trace_width': -1},
    {'sample_rate': 100.0, 'vertical_grid_lines': -1},
    {'sample_rate': 100.0, 'horizontal_grid_lines': 2.5},
    {'sample_rate': 100.0, 'horizontal_grid_lines': True},
    {'sample_rate': 100.0, 'vertical_grid_lines': False},
    {'sample_rate': 10 ** 400},
])
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(TraceConfigError):
        TraceSettings(**kwargs)


def test_config_error_is_a_value_error():
    assert issubclass(TraceConfigError, ValueError)


def test_log_directory_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv('TRACESCOPE_LOG_DIR', str(tmp_path))

    assert config.get_log_directory() == str(tmp_path)
