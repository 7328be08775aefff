"""
Tests for the CLI client and entry points
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from patrol_nav.cli import main as cli_main
from patrol_nav.cli.client import ConnectionError, PatrolClient, ServerError
from patrol_nav.server.main import apply_args, parse_args
from patrol_nav.config import Config


def make_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data if data is not None else {}
    return response


class TestPatrolClient:
    """Test HTTP client"""

    @patch('patrol_nav.cli.client.requests.request')
    def test_set_selector(self, mock_request):
        mock_request.return_value = make_response(200, {'success': True, 'selector': 1})

        result = PatrolClient("http://robot:8080/").set_selector(1)

        assert result['selector'] == 1
        method, url = mock_request.call_args[0]
        assert method == 'POST'
        assert url == "http://robot:8080/api/selector"
        assert mock_request.call_args[1]['json'] == {'value': 1}

    @patch('patrol_nav.cli.client.requests.request')
    def test_server_error(self, mock_request):
        mock_request.return_value = make_response(409, {'error': 'No plan executing'})

        with pytest.raises(ServerError, match="No plan executing"):
            PatrolClient().cancel_plan()

    @patch('patrol_nav.cli.client.requests.request')
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(ConnectionError):
            PatrolClient().get_status()

    @patch('patrol_nav.cli.client.requests.get')
    def test_server_not_running(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert PatrolClient().is_server_running() is False


class TestCliCommands:
    """Test argument handling"""

    def test_no_command_prints_help(self, capsys):
        assert cli_main.main([]) == 0
        assert "patrol-nav" in capsys.readouterr().out

    @patch.object(PatrolClient, 'is_server_running', return_value=False)
    def test_server_down(self, _running, capsys):
        assert cli_main.main(['status']) == 1
        assert "not running" in capsys.readouterr().out

    @patch.object(PatrolClient, 'set_selector', return_value={'success': True, 'selector': 3})
    @patch.object(PatrolClient, 'is_server_running', return_value=True)
    def test_selector(self, _running, mock_selector, capsys):
        assert cli_main.main(['selector', '3']) == 0
        mock_selector.assert_called_once_with(3)
        assert "Selector set to 3" in capsys.readouterr().out

    @patch.object(PatrolClient, 'set_pose', return_value={'pose': {'x': 1.0, 'y': 2.0}})
    @patch.object(PatrolClient, 'is_server_running', return_value=True)
    def test_pose(self, _running, mock_pose):
        assert cli_main.main(['pose', '1.0', '2.0']) == 0
        mock_pose.assert_called_once_with(1.0, 2.0, 0.0)

    @patch.object(PatrolClient, 'is_server_running', return_value=True)
    def test_pose_needs_coordinates(self, _running):
        assert cli_main.main(['pose', '1.0']) == 1


class TestServerArgs:
    """Test daemon flag handling"""

    def test_overrides(self):
        args = parse_args(['--port', '9000', '--scenario', 'plans.yaml', '--record', 'fb.csv', '-v'])
        config = apply_args(Config(), args)

        assert config.interface.rest_port == 9000
        assert config.simulation.scenario == 'plans.yaml'
        assert config.interface.record_file == 'fb.csv'
        assert config.interface.log_level == 'DEBUG'

    def test_defaults_keep_config(self):
        config = Config()
        config.interface.rest_port = 8181

        apply_args(config, parse_args([]))

        assert config.interface.rest_port == 8181
        assert config.interface.rest_enabled is True
