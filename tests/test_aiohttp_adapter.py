import asyncio
import pytest
from aioresponses import aioresponses

from cloudjobs.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from cloudjobs.core.exceptions import JobStatusFetchError, TransientFetchError

"""
Tests for AioHttpClientAdapter behavior.

Each test verifies how the adapter maps upstream responses and errors into
JobStatusFetchError. Expected outcomes:
- Non-JSON responses are invalid upstream content: JobStatusFetchError, not
    retryable.
- 4xx responses are fatal (JobStatusFetchError), 5xx responses are transient
    (TransientFetchError); both carry the upstream status.
- Network timeouts map to TransientFetchError with status 504, connection
    errors to TransientFetchError with status 502.

The retry adapter only retries TransientFetchError, so these mappings decide
which status query failures are retried.
"""


@pytest.mark.asyncio
async def test_get_json_response():
    # Happy path: the endpoint returns valid JSON which is parsed into a dict.
    url = "http://example.test/client/api"
    with aioresponses() as m:
        m.get(url, payload={"queryasyncjobresultresponse": {"jobstatus": 0}}, status=200)

        async with AioHttpClientAdapter() as client:
            data = await client.get(url)
            assert isinstance(data, dict)
            assert data["queryasyncjobresultresponse"]["jobstatus"] == 0


@pytest.mark.asyncio
async def test_get_sends_query_params():
    # Query parameters are part of the request URL.
    url = "http://example.test/client/api"
    with aioresponses() as m:
        m.get(f"{url}?command=queryAsyncJobResult&jobid=job-1", payload={"ok": True})

        async with AioHttpClientAdapter() as client:
            data = await client.get(url, params={"command": "queryAsyncJobResult", "jobid": "job-1"})
            assert data == {"ok": True}


@pytest.mark.asyncio
async def test_get_non_json_response_raises_fetch_error():
    # Non-JSON response: the endpoint returned HTML instead of JSON. This is a
    # contract violation and must not be classified as transient.
    url = "http://example.test/bad"
    with aioresponses() as m:
        m.get(url, body="<html>error</html>", status=200, headers={"Content-Type": "text/html"})

        async with AioHttpClientAdapter() as client:
            with pytest.raises(JobStatusFetchError) as excinfo:
                await client.get(url)
            assert not isinstance(excinfo.value, TransientFetchError)
            assert "<html>" in excinfo.value.upstream_body


@pytest.mark.asyncio
async def test_get_handles_500_as_transient():
    url = "http://example.test/client/api"
    with aioresponses() as m:
        m.get(url, status=500, body="Server Error")

        async with AioHttpClientAdapter() as client:
            with pytest.raises(TransientFetchError) as excinfo:
                await client.get(url)
            assert excinfo.value.upstream_status == 500
            assert excinfo.value.upstream_body == "Server Error"


@pytest.mark.asyncio
async def test_get_handles_431_as_fatal():
    # CloudStack answers bad parameters with 431; retrying cannot help.
    url = "http://example.test/client/api"
    with aioresponses() as m:
        m.get(url, status=431, body='{"errorcode": 431}')

        async with AioHttpClientAdapter() as client:
            with pytest.raises(JobStatusFetchError) as excinfo:
                await client.get(url)
            assert not isinstance(excinfo.value, TransientFetchError)
            assert excinfo.value.upstream_status == 431


@pytest.mark.asyncio
async def test_timeout_maps_to_transient_504():
    url = "http://example.test/slow"
    with aioresponses() as m:
        # simulate timeout by raising asyncio.TimeoutError
        m.get(url, exception=asyncio.TimeoutError())

        async with AioHttpClientAdapter() as client:
            with pytest.raises(TransientFetchError) as excinfo:
                await client.get(url)
            assert excinfo.value.upstream_status == 504


@pytest.mark.asyncio
async def test_get_without_session_raises_runtime_error():
    client = AioHttpClientAdapter()
    with pytest.raises(RuntimeError):
        await client.get("http://example.test/client/api")
