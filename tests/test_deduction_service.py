import pytest

from app.services.deduction_service import (
    build_order_summary,
    calculate_deductions,
    calculate_gross_amount,
    calculate_net_weight,
    parse_numeric,
    recalculate_on_update,
    sum_other_deductions,
)


def test_parse_numeric_handles_spreadsheet_values():
    assert parse_numeric('₹1,250.50') == 1250.5
    assert parse_numeric(' 42 ') == 42.0
    assert parse_numeric(7) == 7.0
    assert parse_numeric('') == 0.0
    assert parse_numeric(None) == 0.0
    assert parse_numeric('n/a', None) is None
    assert parse_numeric('1.2.3') == 0.0


def test_parse_numeric_keeps_currency_prefixed_amounts_intact():
    assert parse_numeric('Rs. 1,250') == 1250.0
    assert parse_numeric('INR 500') == 500.0
    assert parse_numeric('1.5e3') == 1500.0
    assert parse_numeric('Rs. 12,34,567.50') == 1234567.5
    assert parse_numeric('-250') == -250.0
    assert parse_numeric(float('nan')) == 0.0
    assert parse_numeric('inf', None) is None


def test_order_summary_with_currency_strings():
    summary = build_order_summary({
        'gross_amount': 'Rs. 50,000',
        'deduction_amount_hlw': 'Rs. 500',
    })
    assert summary['gross_amount'] == 50000.0
    assert summary['total_deduction'] == 500.0
    assert summary['net_amount'] == 49500.0


def test_net_weight_is_gross_minus_tare():
    assert calculate_net_weight(38.75, 13.25) == pytest.approx(25.5)
    assert calculate_net_weight('10', '12') == 0.0
    assert calculate_net_weight(None, 12) is None


def test_gross_amount_converts_rate_to_per_mt():
    assert calculate_gross_amount(25.5, 24000) == pytest.approx(612000)
    # 2400 per Quintal is 24000 per MT
    assert calculate_gross_amount(25.5, 2400, 'Quintal') == pytest.approx(612000)
    assert calculate_gross_amount(2, 24, 'KG') == pytest.approx(48000)


def test_other_deductions_sum_ignores_missing_amounts():
    entries = [{'amount': 500, 'remarks': 'unloading'}, {'remarks': 'note only'}, {'amount': '250.5'}]
    assert sum_other_deductions(entries) == pytest.approx(750.5)
    assert sum_other_deductions(None) == 0.0


def test_purchase_order_deductions():
    order = {
        'gross_amount': 612000,
        'deduction_amount_hlw': 1200,
        'deduction_amount_moi_bddi': 3400.5,
        'other_deductions': [{'amount': 500, 'remarks': 'labour'}],
    }
    result = calculate_deductions(order)
    assert result['total_deduction'] == pytest.approx(5100.5)
    assert result['net_amount'] == pytest.approx(606899.5)


def test_sales_order_uses_bdoi_field():
    order = {
        'gross_amount': 100000,
        'deduction_amount_moi_bddi': 9999,
        'deduction_amount_moi_bdoi': 2000,
    }
    result = calculate_deductions(order, quality_key='moi_bdoi')
    assert result['total_deduction'] == 2000
    assert result['net_amount'] == 98000


def test_missing_values_count_as_zero():
    assert calculate_deductions({}) == {'total_deduction': 0.0, 'net_amount': 0.0}


def test_update_recalculates_with_existing_values():
    existing = {
        'gross_amount': 50000,
        'deduction_amount_hlw': 1000,
        'deduction_amount_moi_bddi': 500,
        'other_deductions': [{'amount': 250}],
    }
    changes = {'deduction_amount_hlw': 2000, 'remarks': 'rechecked'}
    updated = recalculate_on_update(existing, changes)

    assert updated['remarks'] == 'rechecked'
    assert updated['total_deduction'] == 2750
    assert updated['net_amount'] == 47250


def test_update_without_amount_fields_is_untouched():
    changes = {'vehicle_no': 'MH12AB1234'}
    assert recalculate_on_update({'gross_amount': 10}, changes) == changes


def test_order_summary_derives_everything():
    summary = build_order_summary({
        'gross_weight_mt': 38.75,
        'tare_weight_mt': 13.25,
        'rate_per_mt': 24000,
        'deduction_amount_hlw': 1200,
        'deduction_amount_moi_bdoi': 800,
    }, 'sales')

    assert summary['order_type'] == 'sales'
    assert summary['net_weight_mt'] == pytest.approx(25.5)
    assert summary['gross_amount'] == pytest.approx(612000)
    assert summary['total_deduction'] == 2000
    assert summary['net_amount'] == pytest.approx(610000)


def test_order_summary_prefers_given_amounts():
    summary = build_order_summary({
        'net_weight_mt': 10,
        'gross_amount': 200000,
        'rate_per_mt': 1,
    })
    assert summary['net_weight_mt'] == 10
    assert summary['gross_amount'] == 200000


def test_order_summary_rejects_unknown_type():
    with pytest.raises(ValueError):
        build_order_summary({}, 'barter')
