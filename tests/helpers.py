"""Small builders shared by the test modules"""

from axleworks.schemas import LineItemCreate


def line(description, kind, quantity, unit_price, discount=0):
    return LineItemCreate(
        description=description,
        kind=kind,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
    )
