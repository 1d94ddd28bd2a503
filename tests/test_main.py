from unittest.mock import patch

import pytest

from medicore.__main__ import main


class TestMain:
    @patch("medicore.__main__.close_connection")
    @patch("medicore.__main__.main_menu")
    @patch("medicore.__main__.reconfigure")
    @patch("medicore.__main__.initialize_db")
    @patch("medicore.__main__.configure_logging")
    def test_startup_order(self, mock_logging, mock_init, mock_reconfigure, mock_menu, mock_close):
        main()

        mock_logging.assert_called_once()
        mock_init.assert_called_once()
        mock_reconfigure.assert_called_once()
        mock_menu.assert_called_once()
        mock_close.assert_called_once()

    @patch("medicore.__main__.close_connection")
    @patch("medicore.__main__.main_menu", side_effect=KeyboardInterrupt)
    @patch("medicore.__main__.reconfigure")
    @patch("medicore.__main__.initialize_db")
    @patch("medicore.__main__.configure_logging")
    def test_connection_closed_on_interrupt(self, mock_logging, mock_init, mock_reconfigure, mock_menu, mock_close):
        with pytest.raises(KeyboardInterrupt):
            main()

        mock_close.assert_called_once()
