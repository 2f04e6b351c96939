import httpx
import pytest

from services.scanner.app.database import create_local_engine, create_session_maker, init_db
from services.scanner.app.schemas import ProductData, ScanCreate


@pytest.fixture()
async def session_maker(tmp_path):
    engine = create_local_engine(f"sqlite+aiosqlite:///{tmp_path / 'scanner.db'}")
    await init_db(engine)
    yield create_session_maker(engine)
    await engine.dispose()


@pytest.fixture()
def sent_requests():
    return []


@pytest.fixture()
async def inventory_http(inventory_app, sent_requests):
    """HTTP client wired straight into the inventory service application."""

    async def record_request(request):
        sent_requests.append(request)

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=inventory_app),
        base_url="http://inventory",
        event_hooks={"request": [record_request]},
    ) as client:
        yield client


def make_scan(barcode="X1", action="increment", zone=None, product="Widget", colour="Red", size="M"):
    return ScanCreate(
        barcode=barcode,
        action=action,
        zone=zone,
        product_data=ProductData(product=product, colour=colour, size=size),
    )


@pytest.fixture()
def scan_factory():
    return make_scan
