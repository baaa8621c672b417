# tests/test_settings.py
import pytest

from rook_server.settings import ServerSettings, Timing


def test_defaults_with_empty_environment():
    settings = ServerSettings.from_env({})
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.log_level == "INFO"
    assert settings.timing == Timing(2.0, 2.0, 5.0, 1.0, 0.5)


def test_values_from_environment():
    settings = ServerSettings.from_env(
        {
            "ROOK_HOST": "127.0.0.1",
            "ROOK_PORT": "8080",
            "ROOK_LOG_LEVEL": "debug",
            "ROOK_TRICK_PAUSE": "0.25",
            "ROOK_NEXT_ROUND_DELAY": "0",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.timing.trick_pause == 0.25
    assert settings.timing.next_round_delay == 0.0
    assert settings.timing.round_result_pause == 2.0


def test_port_takes_precedence_over_rook_port():
    assert ServerSettings.from_env({"PORT": "5000", "ROOK_PORT": "6000"}).port == 5000


@pytest.mark.parametrize(
    "env, name",
    [
        ({"PORT": "abc"}, "PORT"),
        ({"PORT": "70000"}, "PORT"),
        ({"ROOK_TRICK_PAUSE": "soon"}, "ROOK_TRICK_PAUSE"),
        ({"ROOK_AUTOPLAY_STEP_DELAY": "-1"}, "ROOK_AUTOPLAY_STEP_DELAY"),
        ({"ROOK_LOG_LEVEL": "LOUD"}, "ROOK_LOG_LEVEL"),
    ],
)
def test_invalid_values_name_the_variable(env, name):
    with pytest.raises(ValueError, match=name):
        ServerSettings.from_env(env)


def test_results_dir_from_environment(tmp_path):
    assert ServerSettings.from_env({}).results_dir is None
    settings = ServerSettings.from_env({"ROOK_RESULTS_DIR": str(tmp_path)})
    assert settings.results_dir == tmp_path
