"""Tests for field mappings and filter rewriting."""

import pytest

from chainstream_dex.stream.fields import (
    FIELD_MAPPINGS,
    get_available_fields,
    get_field_mappings,
    replace_filter_fields,
    to_attribute_name,
    wire_fields,
)


class TestFieldMappings:
    def test_wallet_balance_mapping(self):
        mapping = get_field_mappings("subscribeWalletBalance")
        assert mapping["walletAddress"] == "a"
        assert mapping["tokenAddress"] == "ta"
        assert mapping["tokenPriceInUsd"] == "tpiu"
        assert mapping["balance"] == "b"
        assert mapping["timestamp"] == "t"

    def test_short_codes_are_scoped_per_type(self):
        assert get_field_mappings("subscribeWalletBalance")["tokenAddress"] == "ta"
        assert get_field_mappings("subscribeTokenHolders")["tokenAddress"] == "a"
        assert get_field_mappings("subscribeTokenTrades")["txHash"] == "h"
        assert get_field_mappings("subscribeTokenHolders")["holders"] == "h"

    def test_unknown_type_is_empty(self):
        assert dict(get_field_mappings("subscribeNothing")) == {}
        assert get_available_fields("subscribeNothing") == []

    def test_available_fields_in_table_order(self):
        assert get_available_fields("subscribeTokenSupply") == [
            "tokenAddress",
            "supply",
            "marketCapInUsd",
            "timestamp",
        ]

    def test_token_stat_windows(self):
        mapping = get_field_mappings("subscribeTokenStats")
        for window in ("1m", "5m", "15m", "30m", "1h", "4h", "24h"):
            assert mapping[f"buys{window}"] == f"b{window}"
            assert mapping[f"buyVolumeInUsd{window}"] == f"bviu{window}"
            assert mapping[f"closeInUsd{window}"] == f"ciu{window}"
        assert mapping["price"] == "p"
        assert len(mapping) == 7 * 9 + 3

    def test_only_filterable_streams_have_tables(self):
        assert sorted(FIELD_MAPPINGS) == [
            "subscribeDexPoolBalance",
            "subscribeNewToken",
            "subscribeNewTokensMetadata",
            "subscribeTokenCandles",
            "subscribeTokenHolders",
            "subscribeTokenLiquidity",
            "subscribeTokenStats",
            "subscribeTokenSupply",
            "subscribeTokenTrades",
            "subscribeWalletBalance",
            "subscribeWalletPnl",
        ]
        for name in (
            "subscribeWalletPnlList",
            "subscribeTokenBondingCurve",
            "subscribeLaunchPlatform",
            "subscribeSocialMedia",
        ):
            assert dict(get_field_mappings(name)) == {}
            assert get_available_fields(name) == []
            assert wire_fields(name)

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            FIELD_MAPPINGS["subscribeWalletBalance"]["balance"] = "x"
        with pytest.raises(TypeError):
            FIELD_MAPPINGS["subscribeNew"] = {}


class TestAttributeNames:
    def test_camel_to_snake(self):
        assert to_attribute_name("buyVolumeInUsd1m") == "buy_volume_in_usd1m"
        assert to_attribute_name("tokenAAddress") == "token_a_address"
        assert to_attribute_name("top100Amount") == "top100_amount"
        assert to_attribute_name("opentime") == "opentime"

    def test_wire_fields(self):
        assert wire_fields("subscribeTokenLiquidity") == (
            ("token_address", "a"),
            ("metric_type", "t"),
            ("value", "v"),
            ("timestamp", "ts"),
        )


class TestReplaceFilterFields:
    def test_wallet_balance_filter(self):
        result = replace_filter_fields('walletAddress == "X"', "subscribeWalletBalance")
        assert result == 'meta.a == "X"'

    def test_compound_filter(self):
        result = replace_filter_fields(
            'tokenAddress == "Y" && balance > 100', "subscribeWalletBalance"
        )
        assert result == 'meta.ta == "Y" && meta.b > 100'

    def test_prefixed_long_name(self):
        result = replace_filter_fields("meta.tokenPriceInUsd > 1", "subscribeWalletBalance")
        assert result == "meta.tpiu > 1"

    def test_whole_word_only(self):
        result = replace_filter_fields("balanceX > 1 && balance > 2", "subscribeWalletBalance")
        assert result == "balanceX > 1 && meta.b > 2"

    def test_windowed_names_not_confused_with_price(self):
        result = replace_filter_fields("price1h > price", "subscribeTokenStats")
        assert result == "meta.p1h > meta.p"

    def test_idempotent(self):
        once = replace_filter_fields(
            'walletAddress == "X" && balance > 1', "subscribeWalletBalance"
        )
        twice = replace_filter_fields(once, "subscribeWalletBalance")
        assert once == twice == 'meta.a == "X" && meta.b > 1'

    def test_unmapped_identifiers_pass_through(self):
        result = replace_filter_fields("foo == 1 && meta.zz > 2", "subscribeWalletBalance")
        assert result == "foo == 1 && meta.zz > 2"

    def test_unknown_type_is_identity(self):
        assert replace_filter_fields("walletAddress == 1", "subscribeNothing") == (
            "walletAddress == 1"
        )

    def test_decode_only_types_do_not_rewrite(self):
        expression = 'tokens > 3 && resolution == "1d"'
        assert replace_filter_fields(expression, "subscribeWalletPnlList") == expression

    def test_empty_filter(self):
        assert replace_filter_fields("", "subscribeWalletBalance") == ""
        assert replace_filter_fields(None, "subscribeWalletBalance") is None

    def test_uses_type_specific_codes(self):
        assert replace_filter_fields('tokenAddress == "T"', "subscribeTokenHolders") == (
            'meta.a == "T"'
        )
        assert replace_filter_fields('tokenAddress == "T"', "subscribeWalletBalance") == (
            'meta.ta == "T"'
        )
