"""OrderLineItem aggregate: one row per purchased cart line.

Product name, image and price are copied at purchase time so later catalogue
edits never change what the order says was bought.
"""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.aggregate
class OrderLineItem:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_image = String(max_length=1000)
    size = String(max_length=50)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)

    @classmethod
    def from_cart_line(cls, order_id, line):
        return cls(
            order_id=order_id,
            product_id=line.product_id,
            product_name=line.name,
            product_image=line.image_url,
            size=line.size,
            color=line.color,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=round(line.unit_price * line.quantity, 2),
        )
