"""FlitCar Admin: админ-панель маркетплейса аренды автомобилей."""

__version__ = "0.1.0"
