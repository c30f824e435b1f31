"""Event catalog models, as published by the store."""

from decimal import Decimal

from pydantic import BaseModel, Field


class TicketType(BaseModel):
    """A ticket variation of an event product."""

    id: int
    name: str
    price: Decimal = Field(..., ge=0)
    stock_quantity: int | None = None


class Event(BaseModel):
    """
    An event with its ticket product.

    id is the WooCommerce product id (what orders reference); event_id is
    the event's own id. stock_quantity is shared across all ticket types.
    """

    id: int
    event_id: int | None = None
    name: str
    date: str | None = None
    time: str | None = None
    location: str | None = None
    stock_quantity: int | None = None
    stock_status: str = "instock"
    ticket_types: list[TicketType] = Field(default_factory=list)

    @property
    def is_available(self) -> bool:
        """Whether tickets can still be ordered."""
        if self.stock_status != "instock":
            return False
        return self.stock_quantity is None or self.stock_quantity > 0

    def ticket_type(self, ticket_type_id: int) -> TicketType | None:
        for ticket_type in self.ticket_types:
            if ticket_type.id == ticket_type_id:
                return ticket_type
        return None
