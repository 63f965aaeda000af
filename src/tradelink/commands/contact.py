"""Command group: address-book contacts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.commands._base import TradelinkGroup
from tradelink.services.contacts import ContactService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext

_CONTACT_EXAMPLES = """\
  tradelink --as ann contact list
  tradelink --as ann contact delete 4"""


@click.group(cls=TradelinkGroup, examples=_CONTACT_EXAMPLES)
def contact() -> None:
    """Your contacts, including those mirrored from connections."""


@contact.command("list", examples="  tradelink --as ann --json contact list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List your contacts."""
    app.emit(ContactService(app.network).list_contacts(app.acting_as))


@contact.command(examples="  tradelink --as ann contact delete 4")
@click.argument("contact_id", type=int)
@click.pass_obj
def delete(app: AppContext, contact_id: int) -> None:
    """Delete a contact; a mirrored contact also ends the connection."""
    app.emit(ContactService(app.network).delete_contact(app.acting_as, contact_id))
