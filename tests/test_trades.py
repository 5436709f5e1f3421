from datetime import date

from insider_lens.compute.scoring import round_half_up, score_conviction
from insider_lens.compute.trades import holdings_before, percentage_change, process_trade, process_trades
from insider_lens.models import RawTrade


def _raw(code, shares, after, *, price=10.0, day=date(2026, 10, 1), name="Jane Doe", role="Director"):
    return RawTrade(
        insider_name=name,
        role=role,
        transaction_code=code,
        shares_traded=shares,
        share_price=price,
        shares_owned_after=after,
        filing_date=day,
        ticker="ACME",
        is_scheduled_plan=False,
    )


def test_large_purchase():
    t = process_trade(_raw("P", 500000, 1500000, price=178.5))

    assert t.total_holdings_before == 1000000
    assert t.percentage_change == 50.0
    assert t.conviction_score == 98
    assert t.transaction_label == "Used Personal Cash"
    assert t.trade_value == 500000 * 178.5
    assert t.transaction_code == "P"


def test_sale():
    t = process_trade(_raw("S", 12000, 83000))

    assert t.total_holdings_before == 95000
    assert t.percentage_change == 12.63
    assert t.conviction_score == 32
    assert t.transaction_label == "Insider Selling"


def test_purchase_with_inconsistent_holdings_clamps_to_zero():
    t = process_trade(_raw("P", 1000, 400))

    assert t.total_holdings_before == 0
    assert t.percentage_change == 0
    assert t.conviction_score == 40


def test_other_codes_collapse_to_award_for_display():
    t = process_trade(_raw("M", 10000, 20000, price=0))

    assert t.transaction_code == "A"
    assert t.raw_transaction_code == "M"
    assert t.transaction_label == "Option Exercise"
    # M is not netted against the post-trade holdings
    assert t.total_holdings_before == 30000
    assert t.conviction_score <= 30


def test_unlabelled_code():
    t = process_trade(_raw("J", 10, 100))
    assert t.transaction_label == "Transaction (J)"
    assert t.transaction_code == "A"


def test_derived_fields_can_be_recomputed():
    raws = [
        _raw("P", 500000, 1500000),
        _raw("S", 12000, 83000),
        _raw("A", 2500, 7500),
        _raw("F", 300, 9700),
        _raw("G", 1, 0),
        _raw("S", 1, 799),
        _raw("A", 1, 5),
        _raw("P", 9996, 109996),
    ]
    for t in [process_trade(r) for r in raws]:
        before = holdings_before(t.raw_transaction_code, t.shares_traded, t.shares_owned_after)
        pct = percentage_change(t.shares_traded, before)

        assert before == t.total_holdings_before
        assert round_half_up(pct * 100) / 100 == t.percentage_change
        assert score_conviction(t.raw_transaction_code, pct) == t.conviction_score
        assert t.trade_value == t.shares_traded * t.share_price
        assert 0 <= t.conviction_score <= 100
        assert t.transaction_code in ("P", "S", "A")
        assert t.total_holdings_before >= 0


def test_award_conviction_rounds_half_up():
    # 25% award: 10 + 12.5 -> 23 (round() would give 22)
    t = process_trade(_raw("A", 1, 5))

    assert t.percentage_change == 25.0
    assert t.conviction_score == 23


def test_conviction_uses_unrounded_percentage():
    # 9.996% displays as 10.0 but stays in the 5-10% band
    t = process_trade(_raw("P", 9996, 109996))

    assert t.percentage_change == 10.0
    assert t.conviction_score == 72


def test_newest_first_and_stable():
    raws = [
        _raw("P", 1, 10, day=date(2026, 9, 1), name="a"),
        _raw("S", 1, 10, day=date(2026, 10, 1), name="b"),
        _raw("S", 1, 10, day=date(2026, 9, 1), name="c"),
        _raw("A", 1, 10, day=date(2026, 10, 1), name="d"),
    ]
    out = process_trades(raws)

    assert [t.insider_name for t in out] == ["b", "d", "a", "c"]


def test_to_dict_shape():
    d = process_trade(_raw("S", 12000, 83000)).to_dict()

    assert d["transactionCode"] == "S"
    assert d["date"] == "2026-10-01"
    assert d["percentageChange"] == 12.63
    assert d["totalHoldingsBefore"] == 95000


def test_whole_share_counts_serialize_as_integers():
    d = process_trade(_raw("P", 500000.0, 1500000.0)).to_dict()

    assert d["sharesTraded"] == 500000 and isinstance(d["sharesTraded"], int)
    assert isinstance(d["sharesOwnedAfter"], int)
    assert isinstance(d["totalHoldingsBefore"], int)


def test_fractional_share_counts_are_kept():
    d = process_trade(_raw("A", 10.5, 20.5)).to_dict()

    assert d["sharesTraded"] == 10.5
    assert d["totalHoldingsBefore"] == 10
