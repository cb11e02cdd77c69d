"""Tests for ReuseOrAssociateNewPublicIp."""

import pytest
from unittest.mock import AsyncMock

from cloudjobs.adapters.job_status_inmemory import InMemoryJobStatusStore
from cloudjobs.core.config import JobCompletionConfig, TimeUnit
from cloudjobs.core.exceptions import PreconditionUnmet
from cloudjobs.core.managers.job_completion import JobCompletionPredicate
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.managers.public_ips import ReuseOrAssociateNewPublicIp
from cloudjobs.core.models.job import JobHandle, JobRecord, JobStatus
from cloudjobs.core.models.resources import Network, NetworkType, PublicIPAddress, Zone


# --- Test Fixtures ---

@pytest.fixture
def store():
    return InMemoryJobStatusStore()


@pytest.fixture
def completer(store):
    config = JobCompletionConfig(max_duration=50, period=1, max_period=5, unit=TimeUnit.milliseconds)
    return AsyncOperationCompleter(JobCompletionPredicate(store, config), store)


@pytest.fixture
def zones():
    port = AsyncMock()
    port.get_zone.return_value = Zone(id="zone-1", network_type=NetworkType.advanced)
    return port


@pytest.fixture
def addresses():
    port = AsyncMock()
    port.list_public_ip_addresses.return_value = []
    return port


@pytest.fixture
def network():
    return Network(id="net-1", zone_id="zone-1")


@pytest.fixture
def strategy(completer, zones, addresses):
    return ReuseOrAssociateNewPublicIp(completer, zones, addresses)


def address(id: str, **fields) -> PublicIPAddress:
    return PublicIPAddress(id=id, ip_address=f"72.52.126.{len(id)}", network_id="net-1", **fields)


class TestObtain:
    @pytest.mark.asyncio
    async def test_reuses_free_address_without_allocation(self, strategy, addresses, network):
        free = address("ip-1")
        addresses.list_public_ip_addresses.return_value = [free]

        result = await strategy.obtain(network)

        assert result is free
        addresses.list_public_ip_addresses.assert_awaited_once_with("net-1", allocated_only=True)
        addresses.associate_ip_address_in_zone.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_free_address_wins(self, strategy, addresses, network):
        first, second = address("ip-1"), address("ip-22")
        addresses.list_public_ip_addresses.return_value = [first, second]

        assert await strategy.obtain(network) is first

    @pytest.mark.asyncio
    async def test_addresses_in_use_are_not_reused(self, store, strategy, addresses, network):
        addresses.list_public_ip_addresses.return_value = [
            address("ip-1", is_source_nat=True),
            address("ip-2", is_static_nat=True),
            address("ip-3", virtual_machine_id="vm-1"),
            PublicIPAddress(id="ip-4", ip_address="10.0.0.4", network_id="net-other"),
        ]
        store.script(
            "job-assoc",
            [JobRecord(id="job-assoc", status=JobStatus.succeeded, result={"ipaddress": {"id": "ip-5", "ipaddress": "10.0.0.5"}})],
        )
        addresses.associate_ip_address_in_zone.return_value = JobHandle(job_id="job-assoc")

        result = await strategy.obtain(network)

        assert result.id == "ip-5"

    @pytest.mark.asyncio
    async def test_allocates_when_nothing_is_free(self, store, strategy, addresses, network):
        store.script(
            "job-assoc",
            [
                JobRecord(id="job-assoc", status=JobStatus.in_progress),
                JobRecord(
                    id="job-assoc",
                    status=JobStatus.succeeded,
                    result={
                        "ipaddress": {
                            "id": "ip-new",
                            "ipaddress": "72.52.126.110",
                            "associatednetworkid": "net-1",
                            "issourcenat": False,
                            "isstaticnat": False,
                        }
                    },
                ),
            ],
        )
        addresses.associate_ip_address_in_zone.return_value = JobHandle(job_id="job-assoc")

        result = await strategy.obtain(network)

        assert isinstance(result, PublicIPAddress)
        assert result.id == "ip-new"
        assert result.network_id == "net-1"
        addresses.associate_ip_address_in_zone.assert_awaited_once_with("zone-1", network_id="net-1")

    @pytest.mark.asyncio
    async def test_precondition_gate_blocks_allocation(self, strategy, zones, addresses, network):
        zones.get_zone.return_value = Zone(id="zone-1", network_type=NetworkType.basic)

        with pytest.raises(PreconditionUnmet):
            await strategy.obtain(network)

        addresses.list_public_ip_addresses.assert_not_awaited()
        addresses.associate_ip_address_in_zone.assert_not_awaited()
