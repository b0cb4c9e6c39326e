import pytest

from packages.pledge_engine.pledges import (
    PledgeValidationError,
    build_pledge_fields,
    yearly_amount,
)


@pytest.mark.parametrize(
    "frequency, expected",
    [
        ("monthly", 1200.0),
        ("quarterly", 400.0),
        ("annually", 100.0),
        ("one-time", 100.0),
        ("fortnightly", 1200.0),
        ("Monthly", 1200.0),
    ],
)
def test_yearly_amount_multipliers(frequency, expected):
    assert yearly_amount(100, frequency) == expected


def test_yearly_amount_without_frequency_is_zero():
    assert yearly_amount(100, None) == 0
    assert yearly_amount(0, "monthly") == 0


class TestBuildPledgeFields:
    def test_missionary_support(self):
        fields = build_pledge_fields(
            missionaries_committed=2, frequency="Monthly", amount=500
        )
        assert fields["frequency"] == "monthly"
        assert fields["yearly_missionary_support"] == 6000
        assert fields["yearly_special_support"] == 0
        assert fields["special_support_frequency"] is None
        assert fields["in_kind_support"] is False
        assert fields["fulfillment_status"] == 0

    def test_special_support_only(self):
        fields = build_pledge_fields(
            special_support_amount=1000, special_support_frequency="quarterly"
        )
        assert fields["yearly_missionary_support"] == 0
        assert fields["frequency"] is None
        assert fields["yearly_special_support"] == 4000

    def test_in_kind_only(self):
        fields = build_pledge_fields(
            in_kind_support=True, in_kind_support_details="Office furniture"
        )
        assert fields["in_kind_support"] is True
        assert fields["in_kind_support_details"] == "Office furniture"

    def test_in_kind_without_details_is_not_support(self):
        with pytest.raises(PledgeValidationError):
            build_pledge_fields(in_kind_support=True)

    def test_nothing_pledged_is_rejected(self):
        with pytest.raises(PledgeValidationError, match="at least one type"):
            build_pledge_fields()

    def test_missionary_support_requires_frequency(self):
        with pytest.raises(PledgeValidationError, match="missionary support"):
            build_pledge_fields(missionaries_committed=1, amount=100)

    def test_special_support_requires_frequency(self):
        with pytest.raises(PledgeValidationError, match="special support"):
            build_pledge_fields(special_support_amount=100)
