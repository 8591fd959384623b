"""
Tests for checkout, polling and the URLSCM orchestration.
"""

import ftplib
import logging
import os
import sys
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import make_response
from core.fetcher import Fetcher
from core.poller import Poller
from core.scm import URLSCM
from models.build import BuildRecord, SUCCESS, FAILURE
from models.check_result import ChangeVerdict
from models.ledger import TimestampLedger, NOT_SUPPORTED_TEXT
from models.source import SourceConfiguration
from utils.errors import TimestampQueryError

JAN_15 = 'Wed, 15 Jan 2025 10:30:00 GMT'
JAN_15_MILLIS = int(datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc).timestamp() * 1000)
FEB_01 = 'Sat, 01 Feb 2025 08:00:00 GMT'


@pytest.fixture
def build_logger():
    return logging.getLogger('test.build')


class TestFetcher:
    """Tests for checkout."""

    def setup_method(self):
        self.fetcher = Fetcher()

    def test_clear_workspace_scenario(self, http_server, workspace, build_logger):
        """Stale files are removed and the ledger holds the server's date."""
        with workspace.open_for_write('stale.txt') as f:
            f.write(b'old')
        http_server.routes['http://host/a.txt'] = make_response(b'hello', last_modified=JAN_15)

        config = SourceConfiguration.from_urls(['http://host/a.txt'], clear_workspace=True)
        result = self.fetcher.checkout(config, workspace, build_logger)

        assert result.success is True
        assert not workspace.exists('stale.txt')
        with open(workspace.child('a.txt'), 'rb') as f:
            assert f.read() == b'hello'
        assert result.ledger.to_dict() == {'http://host/a.txt': JAN_15_MILLIS}

    def test_workspace_kept_without_clear(self, http_server, workspace, build_logger):
        with workspace.open_for_write('keep.txt') as f:
            f.write(b'keep')
        with workspace.open_for_write('a.txt') as f:
            f.write(b'previous content that is longer')
        http_server.routes['http://host/a.txt'] = make_response(b'new')

        config = SourceConfiguration.from_urls(['http://host/a.txt'])
        result = self.fetcher.checkout(config, workspace, build_logger)

        assert result.success is True
        assert workspace.exists('keep.txt')
        with open(workspace.child('a.txt'), 'rb') as f:
            assert f.read() == b'new'

    def test_failure_aborts_remaining_urls(self, http_server, workspace, build_logger, caplog):
        http_server.routes['http://host/one.txt'] = make_response(b'1', last_modified=JAN_15)
        http_server.routes['http://host/three.txt'] = make_response(b'3', last_modified=JAN_15)
        urls = ['http://host/one.txt', 'http://host/two.txt', 'http://host/three.txt']

        with caplog.at_level(logging.INFO):
            result = self.fetcher.checkout(
                SourceConfiguration.from_urls(urls), workspace, build_logger
            )

        assert result.success is False
        assert result.ledger is None
        assert result.failed_url == 'http://host/two.txt'
        assert result.copied == ['one.txt']
        assert workspace.exists('one.txt')
        assert not workspace.exists('three.txt')
        assert http_server.get.call_count == 2

        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert errors[0].startswith('Unable to copy http://host/two.txt\n')

    def test_http_error_status_fails_checkout(self, http_server, workspace, build_logger):
        http_server.routes['http://host/gone.txt'] = make_response(
            status_error=requests.exceptions.HTTPError('404 Client Error: Not Found')
        )

        result = self.fetcher.checkout(
            SourceConfiguration.from_urls(['http://host/gone.txt']), workspace, build_logger
        )

        assert result.success is False
        assert '404' in result.error

    def test_progress_logged_in_order(self, remote_files, workspace, build_logger, caplog):
        first = remote_files('first.csv', b'a')
        second = remote_files('second.csv', b'b')

        with caplog.at_level(logging.INFO):
            self.fetcher.checkout(
                SourceConfiguration.from_urls([first, second]), workspace, build_logger
            )

        messages = [r.getMessage() for r in caplog.records if r.name == 'test.build']
        assert messages == [
            f"Copying {first} to first.csv",
            f"Copying {second} to second.csv",
        ]

    def test_last_modified_not_supported(self, http_server, workspace, build_logger):
        http_server.routes['http://host/dynamic.json'] = make_response(b'{}')

        result = self.fetcher.checkout(
            SourceConfiguration.from_urls(['http://host/dynamic.json']), workspace, build_logger
        )

        assert result.ledger.get_last_modified('http://host/dynamic.json') == 0
        assert result.ledger.get_url_dates() == {'http://host/dynamic.json': NOT_SUPPORTED_TEXT}

    def test_url_without_filename(self, http_server, workspace, build_logger):
        http_server.routes['http://host/dir/'] = make_response(b'<html/>')

        result = self.fetcher.checkout(
            SourceConfiguration.from_urls(['http://host/dir/']), workspace, build_logger
        )

        assert result.success is False
        assert 'does not contain filename' in result.error

    def test_query_string_not_in_filename(self, http_server, workspace, build_logger):
        http_server.routes['http://host/export.csv?format=raw'] = make_response(b'x')

        result = self.fetcher.checkout(
            SourceConfiguration.from_urls(['http://host/export.csv?format=raw']),
            workspace,
            build_logger
        )

        assert result.copied == ['export.csv']

    @patch('handlers.ftp_handler.ftplib.FTP')
    def test_ftp_error_fails_checkout(self, mock_ftp_class, workspace, build_logger, caplog):
        mock_ftp_class.return_value.sendcmd.side_effect = ftplib.error_temp('450 busy')
        url = 'ftp://ftp.example.com/pub/data.zip'

        with caplog.at_level(logging.INFO):
            result = self.fetcher.checkout(
                SourceConfiguration.from_urls([url]), workspace, build_logger
            )

        assert result.success is False
        assert result.failed_url == url
        assert '450 busy' in result.error
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].startswith(f"Unable to copy {url}\n")

    def test_unexpected_error_fails_checkout(self, workspace, build_logger):
        fetcher = Fetcher()
        with patch.object(fetcher.factory, 'open', side_effect=RuntimeError('boom')):
            result = fetcher.checkout(
                SourceConfiguration.from_urls(['http://host/a.txt']), workspace, build_logger
            )

        assert result.success is False
        assert result.error == 'boom'

    def test_empty_url_list(self, workspace, build_logger):
        result = self.fetcher.checkout(SourceConfiguration(), workspace, build_logger)

        assert result.success is True
        assert len(result.ledger) == 0

    def test_changelog_written(self, remote_files, workspace, build_logger, tmp_path):
        changelog = tmp_path / 'changelog.xml'
        url = remote_files('a.txt', b'a')

        self.fetcher.checkout(
            SourceConfiguration.from_urls([url]), workspace, build_logger, str(changelog)
        )

        assert changelog.read_text() == '<log/>'


class TestPoller:
    """Tests for polling."""

    def setup_method(self):
        self.poller = Poller()

    def _build_with(self, entries):
        build = BuildRecord(number=1)
        build.attach(TimestampLedger(entries))
        return build

    def test_no_previous_build(self, http_server, build_logger):
        config = SourceConfiguration.from_urls(['http://host/a.txt'])

        result = self.poller.poll(config, None, build_logger)

        assert result.verdict is ChangeVerdict.NO_PREVIOUS_BUILD
        assert result.significant is True
        assert http_server.get.call_count == 0

    def test_no_previous_ledger(self, http_server, build_logger):
        config = SourceConfiguration.from_urls(['http://host/a.txt'])

        result = self.poller.poll(config, BuildRecord(number=3), build_logger)

        assert result.verdict is ChangeVerdict.NO_PREVIOUS_LEDGER
        assert result.significant is True
        assert result.build_number == 3

    def test_unchanged(self, http_server, build_logger):
        http_server.routes['http://host/a.txt'] = make_response(last_modified=JAN_15)
        config = SourceConfiguration.from_urls(['http://host/a.txt'])

        result = self.poller.poll(
            config, self._build_with({'http://host/a.txt': JAN_15_MILLIS}), build_logger
        )

        assert result.verdict is ChangeVerdict.UNCHANGED
        assert result.significant is False
        assert result.changes == []

    def test_body_is_not_read(self, http_server, build_logger):
        response = make_response(b'large body', last_modified=JAN_15)
        http_server.routes['http://host/a.txt'] = response

        self.poller.poll(
            SourceConfiguration.from_urls(['http://host/a.txt']),
            self._build_with({'http://host/a.txt': JAN_15_MILLIS}),
            build_logger
        )

        response.iter_content.assert_not_called()
        response.close.assert_called_once()

    def test_missing_entry_counts_as_change(self, http_server, build_logger):
        http_server.routes['http://host/new.txt'] = make_response(last_modified=JAN_15)

        result = self.poller.poll(
            SourceConfiguration.from_urls(['http://host/new.txt']),
            self._build_with({}),
            build_logger
        )

        assert result.verdict is ChangeVerdict.CHANGED
        assert result.changes[0].previous == 0
        assert result.changes[0].current == JAN_15_MILLIS

    def test_unsupported_on_both_sides_is_unchanged(self, http_server, build_logger):
        http_server.routes['http://host/dynamic.json'] = make_response()

        result = self.poller.poll(
            SourceConfiguration.from_urls(['http://host/dynamic.json']),
            self._build_with({'http://host/dynamic.json': 0}),
            build_logger
        )

        assert result.verdict is ChangeVerdict.UNCHANGED

    def test_every_change_is_logged(self, http_server, build_logger, caplog):
        http_server.routes['http://host/a.txt'] = make_response(last_modified=FEB_01)
        http_server.routes['http://host/b.txt'] = make_response(last_modified=JAN_15)
        http_server.routes['http://host/c.txt'] = make_response(last_modified=FEB_01)
        ledger = {
            'http://host/a.txt': JAN_15_MILLIS,
            'http://host/b.txt': JAN_15_MILLIS,
            'http://host/c.txt': JAN_15_MILLIS,
        }

        with caplog.at_level(logging.INFO):
            result = self.poller.poll(
                SourceConfiguration.from_urls(list(ledger)), self._build_with(ledger), build_logger
            )

        assert result.verdict is ChangeVerdict.CHANGED
        assert [c.url for c in result.changes] == ['http://host/a.txt', 'http://host/c.txt']
        found = [r.getMessage() for r in caplog.records if r.getMessage().startswith('Found change')]
        assert len(found) == 2
        assert found[0].startswith('Found change: http://host/a.txt modified ')
        assert ' previous modification was ' in found[0]

    def test_query_error_propagates(self, http_server, build_logger, caplog):
        http_server.routes['http://host/a.txt'] = make_response(last_modified=FEB_01)
        ledger = {'http://host/a.txt': JAN_15_MILLIS, 'http://host/b.txt': JAN_15_MILLIS}

        with caplog.at_level(logging.INFO):
            with pytest.raises(TimestampQueryError):
                self.poller.poll(
                    SourceConfiguration.from_urls(list(ledger)), self._build_with(ledger), build_logger
                )

        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].startswith('Unable to check http://host/b.txt\n')

    @patch('handlers.ftp_handler.ftplib.FTP')
    def test_ftp_error_raises_query_error(self, mock_ftp_class, build_logger, caplog):
        mock_ftp_class.return_value.sendcmd.side_effect = ftplib.error_temp('450 busy')
        url = 'ftp://ftp.example.com/pub/data.zip'

        with caplog.at_level(logging.INFO):
            with pytest.raises(TimestampQueryError):
                self.poller.poll(
                    SourceConfiguration.from_urls([url]), self._build_with({url: 0}), build_logger
                )

        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].startswith(f"Unable to check {url}\n")

    @patch('handlers.ftp_handler.ftplib.FTP')
    def test_deleted_ftp_file_raises(self, mock_ftp_class, build_logger):
        mock_ftp_class.return_value.sendcmd.side_effect = ftplib.error_perm('550 No such file')
        url = 'ftp://ftp.example.com/pub/gone.zip'

        with pytest.raises(TimestampQueryError):
            self.poller.poll(
                SourceConfiguration.from_urls([url]), self._build_with({url: 0}), build_logger
            )

    def test_empty_url_list_is_unchanged(self, build_logger):
        result = self.poller.poll(SourceConfiguration(), self._build_with({}), build_logger)
        assert result.verdict is ChangeVerdict.UNCHANGED


class TestURLSCM:
    """Tests for builds, polling and URL validation through URLSCM."""

    def _scm(self, urls, store, workspace, clear=False):
        return URLSCM(SourceConfiguration.from_urls(urls, clear), store, workspace)

    def test_checkout_then_poll_is_unchanged(self, remote_files, store, workspace):
        urls = [
            remote_files('a.csv', b'a', mtime=1700000000),
            remote_files('b.csv', b'b', mtime=1700000500),
        ]
        scm = self._scm(urls, store, workspace)

        build, result = scm.run_build()

        assert result.success is True
        assert build.result == SUCCESS
        assert build.get_attached_ledger().get_last_modified(urls[0]) == 1700000000000
        assert scm.poll().verdict is ChangeVerdict.UNCHANGED
        assert scm.compare_remote_revision() is False

    def test_poll_detects_touched_file(self, remote_files, store, workspace):
        url = remote_files('a.csv', b'a', mtime=1700000000)
        scm = self._scm([url], store, workspace)
        scm.run_build()

        remote_files('a.csv', b'b', mtime=1700003600)

        result = scm.poll()
        assert result.verdict is ChangeVerdict.CHANGED
        assert result.changes[0].current == 1700003600000

    def test_first_poll_is_significant(self, remote_files, store, workspace):
        scm = self._scm([remote_files('a.csv')], store, workspace)
        assert scm.poll().verdict is ChangeVerdict.NO_PREVIOUS_BUILD
        assert scm.compare_remote_revision() is True

    def test_failed_build_has_no_ledger(self, remote_files, store, workspace, tmp_path):
        good = remote_files('a.csv', b'a')
        missing = (tmp_path / 'remote' / 'missing.csv').as_uri()
        scm = self._scm([good, missing], store, workspace)

        build, result = scm.run_build()

        assert result.success is False
        assert build.result == FAILURE
        assert build.get_attached_ledger() is None
        assert workspace.exists('a.csv')
        assert scm.poll().verdict is ChangeVerdict.NO_PREVIOUS_LEDGER

    def test_build_completed_when_checkout_raises(self, remote_files, store, workspace, tmp_path):
        scm = self._scm([remote_files('a.csv', b'a')], store, workspace)
        scm.run_build()

        with pytest.raises(FileNotFoundError):
            scm.run_build(changelog_file=str(tmp_path / 'missing' / 'changelog.xml'))

        assert [(b.number, b.result) for b in store.builds] == [(1, SUCCESS), (2, FAILURE)]
        assert store.last_completed_build().number == 2
        assert store.last_completed_build().get_attached_ledger() is None

    def test_ledger_survives_reload(self, remote_files, store, workspace):
        url = remote_files('a.csv', b'a', mtime=1700000000)
        scm = self._scm([url], store, workspace)
        scm.run_build()

        reloaded = URLSCM(scm.config, type(store)(store.state_file), workspace)

        assert reloaded.poll().verdict is ChangeVerdict.UNCHANGED

    def test_report(self, remote_files, store, workspace):
        url = remote_files('a.csv', b'a', mtime=1700000000)
        scm = self._scm([url], store, workspace)

        assert scm.report() == {}
        scm.run_build()

        dates = scm.report()
        assert list(dates) == [url]
        assert dates[url] != NOT_SUPPORTED_TEXT

    def test_requires_no_workspace_for_polling(self):
        assert URLSCM.requires_workspace_for_polling is False


class TestCheckURL:
    """Tests for interactive URL validation."""

    @pytest.fixture
    def scm(self, store, workspace):
        return URLSCM(SourceConfiguration(), store, workspace)

    def test_unauthorized_is_always_ok(self, scm, http_server):
        result = scm.check_url('http://host/a.txt', is_authorized=lambda: False)

        assert result.ok is True
        assert http_server.get.call_count == 0

    def test_reachable_url(self, scm, http_server):
        http_server.routes['http://host/a.txt'] = make_response()
        assert scm.check_url('http://host/a.txt').ok is True

    def test_unreachable_url(self, scm, http_server):
        result = scm.check_url('http://host/a.txt')
        assert result.ok is False
        assert result.message == 'Cannot open http://host/a.txt'

    def test_malformed_url(self, scm):
        result = scm.check_url('no scheme here')
        assert result.message == 'Cannot open no scheme here'

    def test_url_without_filename(self, scm, http_server):
        http_server.routes['http://host/'] = make_response()

        result = scm.check_url('http://host/')

        assert result.ok is False
        assert result.message == 'URL does not contain filename: http://host/'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
