"""
Tests for watch-list persistence.
"""

from src.storage.db import (
    DEFAULT_MY_FUNDS,
    STORAGE_KEY,
    get_saved_fund_codes,
    get_state,
    init_db,
    save_fund_codes,
    set_state,
)


class TestWatchlistStorage:

    def test_defaults_when_nothing_saved(self, db_path):
        assert get_saved_fund_codes(db_path) == ['005827', '161725', '001618']
        assert get_saved_fund_codes(db_path) == DEFAULT_MY_FUNDS

    def test_defaults_not_shared(self, db_path):
        codes = get_saved_fund_codes(db_path)
        codes.append('000000')
        assert '000000' not in DEFAULT_MY_FUNDS

    def test_save_and_load_keeps_order(self, db_path):
        save_fund_codes(['110011', '005827', '320007'], db_path)
        assert get_saved_fund_codes(db_path) == ['110011', '005827', '320007']

    def test_save_dedupes(self, db_path):
        saved = save_fund_codes(['005827', '161725', '005827', ' ', '001618'], db_path)
        assert saved == ['005827', '161725', '001618']
        assert get_saved_fund_codes(db_path) == saved

    def test_overwrite(self, db_path):
        save_fund_codes(['005827'], db_path)
        save_fund_codes(['161725'], db_path)
        assert get_saved_fund_codes(db_path) == ['161725']

    def test_empty_list_is_kept(self, db_path):
        save_fund_codes([], db_path)
        assert get_saved_fund_codes(db_path) == []

    def test_corrupt_snapshot_falls_back(self, db_path):
        init_db(db_path)
        set_state(STORAGE_KEY, '{not json', db_path)
        assert get_saved_fund_codes(db_path) == DEFAULT_MY_FUNDS

    def test_wrong_shape_falls_back(self, db_path):
        init_db(db_path)
        set_state(STORAGE_KEY, '{"codes": ["005827"]}', db_path)
        assert get_saved_fund_codes(db_path) == DEFAULT_MY_FUNDS

    def test_snapshot_is_json_list(self, db_path):
        save_fund_codes(['005827', '161725'], db_path)
        assert get_state(STORAGE_KEY, db_path) == '["005827", "161725"]'
