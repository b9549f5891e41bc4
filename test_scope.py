"""Scope validation tests."""

from extraction.scope import validate_scope


class TestValidateScope:

    def test_all_present(self):
        decision = validate_scope(["0010", "0020"], {"0010", "0020", "0030"})
        assert decision.proceed
        assert decision.present == ("0010", "0020")
        assert decision.missing == ()
        assert not decision.is_partial

    def test_partial_keeps_requested_order(self):
        decision = validate_scope(["0030", "9999", "0010"], {"0010", "0030"})
        assert decision.proceed
        assert decision.present == ("0030", "0010")
        assert decision.missing == ("9999",)
        assert decision.is_partial

    def test_none_present_aborts(self):
        decision = validate_scope(["9998", "9999"], {"0010"})
        assert not decision.proceed
        assert decision.present == ()
        assert decision.missing == ("9998", "9999")
        assert not decision.is_partial

    def test_empty_known_set(self):
        decision = validate_scope(["0010"], set())
        assert not decision.proceed
        assert decision.missing == ("0010",)

    def test_duplicates_reported_once(self):
        decision = validate_scope(["0010", "0010", "9999", "9999"], {"0010"})
        assert decision.present == ("0010",)
        assert decision.missing == ("9999",)

    def test_comparison_is_verbatim(self):
        """The ERP spelling of a cost center is not normalized before comparing."""
        decision = validate_scope(["10"], {"0010"})
        assert not decision.proceed
        assert decision.missing == ("10",)
