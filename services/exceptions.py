"""
Exceptions raised by the offers loader services.

Row and container errors never leave the ingestion worker; they end up
as a terminal task status. The rest are raised up to the API or CLI.
"""


class OffersLoaderError(Exception):
    """Base class for offers loader errors."""


class SellerNotFoundError(OffersLoaderError):
    """The referenced seller does not exist."""

    def __init__(self, seller_id: int):
        self.seller_id = seller_id
        super().__init__(f"Seller {seller_id} does not exist")


class SellerNameTakenError(OffersLoaderError):
    """A seller with this name is already registered."""

    def __init__(self, seller_name: str):
        self.seller_name = seller_name
        super().__init__(f"Seller '{seller_name}' already exists")


class TaskNotFoundError(OffersLoaderError):
    """The referenced task does not exist."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} does not exist")


class TaskStateError(OffersLoaderError):
    """A transition was requested out of a terminal task status."""

    def __init__(self, task_id: int, current: str, target: str):
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(f"Task {task_id} cannot move from {current} to {target}")


class WorkbookFormatError(OffersLoaderError):
    """The uploaded bytes are not a readable workbook."""


class RowRejectedError(OffersLoaderError):
    """A spreadsheet row did not describe a valid offer."""


class PersistenceError(OffersLoaderError):
    """A store operation failed and was rolled back."""


class DispatchError(OffersLoaderError):
    """The ingestion request could not be handed to a worker."""
