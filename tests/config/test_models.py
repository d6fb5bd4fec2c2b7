from __future__ import annotations

import pytest
from pydantic import ValidationError

from parallel_accounts.config import DEFAULT_BASE_URL, EndpointConfig, GlobalConfig, PipelineConfig


def test_defaults_match_reference_service() -> None:
    config = GlobalConfig()
    assert config.endpoint.base_url == DEFAULT_BASE_URL
    assert config.pipeline.result_count == 5
    assert config.pipeline.max_detail_workers is None
    assert config.endpoint.list_url() == DEFAULT_BASE_URL + "list"
    assert config.endpoint.list_url("abc") == DEFAULT_BASE_URL + "list?token=abc"
    assert config.endpoint.detail_url("12") == DEFAULT_BASE_URL + "detail/12"


def test_endpoint_normalises_slashes_and_quotes_values() -> None:
    endpoint = EndpointConfig(base_url="http://localhost:8000/api", list_route="/list", detail_route="/detail/")
    assert endpoint.base_url == "http://localhost:8000/api/"
    assert endpoint.list_url("a b/c") == "http://localhost:8000/api/list?token=a%20b%2Fc"
    assert endpoint.detail_url("x/y") == "http://localhost:8000/api/detail/x%2Fy"


@pytest.mark.parametrize("base_url", ["", "ftp://example.com", "example.com"])
def test_endpoint_rejects_bad_urls(base_url: str) -> None:
    with pytest.raises(ValidationError):
        EndpointConfig(base_url=base_url)


def test_endpoint_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        EndpointConfig(timeout=0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"result_count": 0},
        {"max_detail_workers": 0},
        {"run_timeout": 0},
        {"queue_poll_interval": -1},
    ],
)
def test_pipeline_bounds(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        PipelineConfig(**overrides)
