from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from devcert_ingest.models.record import DeveloperRecord, Grade
from devcert_ingest.services.integrity import (
    BOT_ACTIVITY,
    DISPOSABLE_EMAIL,
    EMAIL_ALIAS,
    SHARED_WALLET,
    SPEED_RUN,
    IntegrityRules,
    annotate_record,
    annotate_records,
    build_wallet_frequency,
    wallet_key,
)

T0 = datetime(2024, 1, 1, 14, tzinfo=UTC)


def _rec(rid: str = "r", *, hours: float | None = None, grade: Grade = Grade.PASS, **kw) -> DeveloperRecord:
    fields = dict(id=rid, email=kw.pop("email", f"{rid}@company.com"), final_grade=grade)
    if hours is not None:
        fields["created_at"] = T0
        fields["completed_at"] = T0 + timedelta(hours=hours)
    fields.update(kw)
    return DeveloperRecord(**fields)


def test_exactly_four_hours_not_flagged():
    out = annotate_record(_rec(hours=4.0), {})
    assert out.duration_hours == pytest.approx(4.0)
    assert out.is_suspicious is False


def test_just_under_four_hours_is_speed_run():
    out = annotate_record(_rec(hours=3.99), {})
    assert out.suspicion_reasons == (SPEED_RUN,)
    assert out.is_suspicious is True


def test_under_thirty_minutes_is_bot_activity():
    out = annotate_record(_rec(hours=0.25), {})
    assert out.suspicion_reasons == (BOT_ACTIVITY,)


def test_fast_but_not_passed_is_not_flagged():
    out = annotate_record(_rec(hours=1, grade=Grade.FAIL), {})
    assert out.is_suspicious is False


def test_repaired_zero_duration_without_pass_is_clean():
    rec = _rec(hours=0, grade=Grade.PENDING, am_pm_repaired=True)
    out = annotate_record(rec, {})
    assert out.duration_hours == 0
    assert out.is_suspicious is False
    assert out.data_error is False


def test_negative_duration_is_data_error_not_suspicious():
    out = annotate_record(_rec(hours=-30), {})
    assert out.data_error is True
    assert out.is_suspicious is False
    assert out.duration_hours == pytest.approx(-30)


def test_missing_dates_leave_duration_unset():
    out = annotate_record(_rec(), {})
    assert out.duration_hours is None
    assert out.data_error is False


def test_email_alias_and_disposable():
    out = annotate_record(_rec(email="user+1@mailinator.com"), {})
    assert out.suspicion_reasons == (EMAIL_ALIAS, DISPOSABLE_EMAIL)
    assert out.suspicion_reason == "Email Alias, Disposable Email"


def test_company_domain_not_disposable():
    assert annotate_record(_rec(email="user@company.com"), {}).is_suspicious is False
    assert DISPOSABLE_EMAIL in annotate_record(_rec(email="user@mailinator.com"), {}).suspicion_reasons


def test_plus_in_domain_is_not_alias():
    assert annotate_record(_rec(email="user@weird+domain.com"), {}).is_suspicious is False


def test_custom_disposable_domains():
    rules = IntegrityRules(disposable_domains=frozenset({"spam.io"}))
    assert annotate_record(_rec(email="a@spam.io"), {}, rules).suspicion_reasons == (DISPOSABLE_EMAIL,)
    assert annotate_record(_rec(email="a@mailinator.com"), {}, rules).is_suspicious is False


def test_wallet_key_rules():
    assert wallet_key(" 0xABCDEF1234567890 ") == "0xabcdef1234567890"
    assert wallet_key("0x12345678") is None  # 10 chars
    assert wallet_key("n/a") is None
    assert wallet_key("") is None


def test_sybil_three_shared_one_unique():
    shared = "0xABCDEF1234567890"
    records = [
        _rec("a", wallet_address=shared),
        _rec("b", wallet_address=shared.lower()),
        _rec("c", wallet_address=f" {shared} "),
        _rec("d", wallet_address="0x9999999999999999"),
    ]
    out = annotate_records(records)
    assert [SHARED_WALLET in r.suspicion_reasons for r in out] == [True, True, True, False]


def test_short_wallets_never_counted():
    records = [_rec("a", wallet_address="0xshort"), _rec("b", wallet_address="0xshort")]
    assert build_wallet_frequency(records) == {}
    assert not any(r.is_suspicious for r in annotate_records(records))


def test_flag_order_duration_email_wallet():
    records = [
        _rec("a", hours=0.1, email="a+x@yopmail.com", wallet_address="0xABCDEF1234567890"),
        _rec("b", wallet_address="0xABCDEF1234567890"),
    ]
    out = annotate_records(records)
    assert out[0].suspicion_reasons == (BOT_ACTIVITY, EMAIL_ALIAS, DISPOSABLE_EMAIL, SHARED_WALLET)


def test_thread_pool_preserves_order_and_results():
    records = [
        _rec(f"r{i}", hours=i % 6, wallet_address="0xABCDEF1234567890" if i % 4 == 0 else "")
        for i in range(40)
    ]
    serial = annotate_records(records)
    threaded = annotate_records(records, workers=4)
    assert threaded == serial


def test_input_records_not_mutated():
    rec = _rec(hours=1)
    annotate_records([rec])
    assert rec.duration_hours is None
    assert rec.is_suspicious is False
