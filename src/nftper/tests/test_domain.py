import pytest

from src.nftper.domain.entities.job import Job
from src.nftper.domain.entities.lifecycle_state import LifecycleState
from src.nftper.domain.enums import Chain, LifecyclePhase, Timeframe
from src.nftper.domain.exceptions import NftperError, ProcessingError, SubmissionError, ValidationError
from src.nftper.domain.value_objects import (
    ErrorInfo,
    JobParameters,
    NavigationRecord,
    is_valid_wallet_address,
    normalize_wallet_address,
)
from src.nftper.tests.fakes import WALLET


@pytest.mark.parametrize(
    "address, ok",
    [
        (WALLET, True),
        (WALLET.upper().replace("0X", "0x"), True),
        ("0X" + "ab" * 20, True),
        ("0x" + "ab" * 19, False),
        ("0x" + "ab" * 21, False),
        ("0x" + "zz" * 20, False),
        ("ab" * 21, False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_wallet_address(address, ok):
    assert is_valid_wallet_address(address) is ok


def test_normalize_wallet_address_lowercases_and_strips():
    assert normalize_wallet_address(f"  0x{'AB' * 20} ") == WALLET


def test_normalize_wallet_address_rejects_garbage():
    with pytest.raises(ValidationError) as exc:
        normalize_wallet_address("0x123")

    assert isinstance(exc.value, ValueError)
    assert isinstance(exc.value, NftperError)
    assert exc.value.details == {"wallet": "0x123"}


def test_job_parameters_normalizes_and_dedupes():
    params = JobParameters.of("3m", ["base", "ethereum", "base"])

    assert params.timeframe is Timeframe.THREE_MONTHS
    assert params.chains == (Chain.BASE, Chain.ETHEREUM)


@pytest.mark.parametrize(
    "timeframe, chains, message",
    [
        ("1m", [], "Please select at least one chain"),
        ("2d", ["ethereum"], "Unknown timeframe: 2d"),
        ("1m", ["ethereum", "solana"], "Unknown chain: solana"),
    ],
)
def test_job_parameters_validation(timeframe, chains, message):
    with pytest.raises(ValidationError, match=message):
        JobParameters.of(timeframe, chains)


def test_job_accepted_keeps_request_fields():
    job = Job(subject=WALLET, parameters=JobParameters.of("1w", ["polygon"]))

    accepted = job.accepted("q42")

    assert job.job_id is None
    assert accepted.job_id == "q42"
    assert accepted.subject == WALLET
    assert accepted.parameters == job.parameters
    assert accepted.created_at is not None


def test_lifecycle_state_invariants():
    job = Job(subject=WALLET, parameters=JobParameters.of("1m", ["ethereum"]), job_id="q1")

    with pytest.raises(ValueError):
        LifecycleState(LifecyclePhase.IDLE, job=job)
    with pytest.raises(ValueError):
        LifecycleState(LifecyclePhase.QUEUED, position=1)
    with pytest.raises(ValueError):
        LifecycleState(LifecyclePhase.QUEUED, job=job, position=-1)

    assert LifecycleState.queued(job, -5).position == 0
    assert LifecycleState.processing(job).position == 0
    assert LifecycleState.idle().job_id is None
    assert LifecycleState.failed(job, ErrorInfo("boom", "q1")).is_terminal
    assert not LifecycleState.submitting(job).is_terminal


def test_navigation_record_state():
    record = NavigationRecord(subject=WALLET, path=f"/{WALLET}")

    assert record.to_state() == {"wallet": WALLET, "path": f"/{WALLET}"}


def test_error_info_from_processing_error():
    info = ErrorInfo.from_error(ProcessingError(None, job_id="q3"))

    assert info == ErrorInfo(message="Processing failed", job_id="q3")
    assert ErrorInfo.from_error(SubmissionError("Wallet is blacklisted")) == ErrorInfo("Wallet is blacklisted")
