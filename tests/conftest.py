import copy
import json

import pytest
import requests

from khatapos import create_app
from khatapos.models import Customer, InventoryItem, WALK_IN_CUSTOMER
from khatapos.services.checkout_service import CheckoutSession
from khatapos.services.stock_snapshot_service import StockSnapshot


INVENTORY = [
    {'_id': 'rice', 'name': 'Basmati Rice 1kg', 'price': 100, 'quantity': 5, 'barcode': '8901000000011'},
    {'_id': 'milk', 'name': 'Milk 500ml', 'price': 30, 'quantity': 2, 'barcode': '8901000000028'},
    {
        '_id': 'soap', 'name': 'Bath Soap', 'price': 99, 'quantity': 50,
        'variants': [
            {'_id': 'sandal', 'label': 'Sandal', 'price': 45, 'quantity': 3, 'sku': 'SOAP-SANDAL'},
            {'_id': 'neem', 'label': 'Neem', 'price': 40, 'quantity': 0, 'sku': 'SOAP-NEEM'},
        ],
    },
    {'_id': 'oil', 'name': 'Mustard Oil 1L', 'price': 180, 'quantity': 0},
    {'_id': 'broken', 'name': '', 'price': 10, 'quantity': 10},
]

CUSTOMERS = [
    {'_id': 'c1', 'name': 'Ramesh Kumar', 'creditLimit': 400, 'outstandingCredit': 200, 'phone': '9800000001'},
    {'_id': 'c2', 'name': 'Sita Devi', 'creditLimit': 0, 'outstandingCredit': 100},
    {'_id': 'c3', 'name': 'Anil Traders', 'outstandingCredit': 0},
]


class FakePosBackend:
    """In-memory stand-in for the shop backend API (same methods as PosApiClient)."""

    def __init__(self, inventory=None, customers=None):
        self.inventory = copy.deepcopy(INVENTORY if inventory is None else inventory)
        self.customers = copy.deepcopy(CUSTOMERS if customers is None else customers)
        self.sales = []
        self.khata = []
        self.credit_updates = []
        self.sale_error = None
        self.inventory_error = None
        self.khata_error = None
        self.on_create_sale = None
        self.closed = 0

    def get_inventory(self):
        if self.inventory_error is not None:
            raise self.inventory_error
        return copy.deepcopy(self.inventory)

    def get_customers(self):
        return copy.deepcopy(self.customers)

    def create_sale(self, sale):
        if self.on_create_sale is not None:
            self.on_create_sale(sale)
        if self.sale_error is not None:
            raise self.sale_error
        self.sales.append(sale)
        for line in sale['items']:
            self._take_stock(line)
        if sale['customerId'] and sale['amountCredited'] > 0:
            self._customer(sale['customerId'])['outstandingCredit'] += sale['amountCredited']
        return {'message': 'Sale recorded', 'newSale': {'_id': f"sale-{len(self.sales)}"}}

    def add_khata_entry(self, customer_id, entry):
        if self.khata_error is not None:
            raise self.khata_error
        self.khata.append((customer_id, entry))
        return {'entry': entry}

    def update_customer_credit(self, customer_id, amount_change):
        self.credit_updates.append((customer_id, amount_change))
        customer = self._customer(customer_id)
        customer['outstandingCredit'] = max(customer['outstandingCredit'] + amount_change, 0)
        return {'customer': copy.deepcopy(customer)}

    def close(self):
        self.closed += 1

    def _customer(self, customer_id):
        return next(c for c in self.customers if c['_id'] == customer_id)

    def _take_stock(self, line):
        item = next(i for i in self.inventory if i['_id'] == line['itemId'])
        if 'variantId' in line:
            item = next(v for v in item['variants'] if v['_id'] == line['variantId'])
        item['quantity'] -= line['quantity']


def make_http_error(status_code, body):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode('utf-8')
    response.headers['Content-Type'] = 'application/json'
    return requests.HTTPError(f'{status_code} Error', response=response)


@pytest.fixture
def http_error():
    """Factory for requests.HTTPError carrying a JSON body."""
    return make_http_error


@pytest.fixture
def backend():
    return FakePosBackend()


@pytest.fixture
def snapshot():
    return StockSnapshot.from_payload(copy.deepcopy(INVENTORY))


@pytest.fixture
def rice(snapshot) -> InventoryItem:
    return snapshot.get_item('rice')


@pytest.fixture
def soap(snapshot) -> InventoryItem:
    return snapshot.get_item('soap')


@pytest.fixture
def walk_in() -> Customer:
    return WALK_IN_CUSTOMER


@pytest.fixture
def ramesh() -> Customer:
    """outstanding 200, limit 400."""
    return Customer.from_dict(CUSTOMERS[0])


@pytest.fixture
def checkout(backend) -> CheckoutSession:
    """Terminal session with the catalog already loaded."""
    session = CheckoutSession('till-test', backend)
    session.reload()
    return session


@pytest.fixture
def app(backend):
    """Create application instance for testing."""
    app = create_app('config.TestingConfig', client_factory=lambda: backend)
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
