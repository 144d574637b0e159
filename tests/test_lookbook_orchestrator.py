import pytest

from src.agents.lookbook_orchestrator import generate_lookbook_images, validate_inputs
from src.specs.common.errors import InputValidationError, ProviderError
from src.specs.models.domain import GarmentSet
from tests.helpers import RecordingProvider


def test_four_sequential_calls_in_pose_order(person, top):
    provider = RecordingProvider()
    urls = generate_lookbook_images(provider, person, GarmentSet(top=top))
    assert urls == ["img-0", "img-1", "img-2", "img-3"]
    assert provider.calls == [0, 1, 2, 3]


def test_first_failure_aborts_remaining_calls(person, top):
    provider = RecordingProvider(fail_on=1)
    completed = []
    with pytest.raises(ProviderError, match="quota exceeded"):
        generate_lookbook_images(
            provider, person, GarmentSet(top=top), on_pose_complete=lambda i, url: completed.append(i)
        )
    assert provider.calls == [0, 1]
    assert completed == [0]


def test_parallel_results_keep_pose_order(person, top):
    provider = RecordingProvider()
    urls = generate_lookbook_images(provider, person, GarmentSet(top=top), parallel=True)
    assert urls == ["img-0", "img-1", "img-2", "img-3"]
    assert sorted(provider.calls) == [0, 1, 2, 3]


def test_parallel_failure_is_raised(person, top):
    with pytest.raises(ProviderError):
        generate_lookbook_images(RecordingProvider(fail_on=2), person, GarmentSet(top=top), parallel=True)


def test_inputs_require_person_and_one_garment(person, top):
    with pytest.raises(InputValidationError, match="at least one clothing item"):
        validate_inputs(person, GarmentSet())
    with pytest.raises(InputValidationError):
        validate_inputs(None, GarmentSet(top=top))


def test_no_provider_call_without_garments(person):
    provider = RecordingProvider()
    with pytest.raises(InputValidationError):
        generate_lookbook_images(provider, person, GarmentSet())
    assert provider.calls == []
