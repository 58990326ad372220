"""Look up accounts by the name or ID given on the command line."""

from budgetkoll.domain.account import AccountService
from budgetkoll.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Return the ID of the account named by ``account``.

    Digits are read as an ID. Otherwise the name must match exactly, or
    ignoring case when exactly one account matches that way ("lönekonto"
    finds "Lönekonto").

    Raises:
        NotFoundError: If no account (or more than one case-insensitive
            match) is found
    """
    text = str(account).strip()
    if text.isdigit():
        account_id = int(text)
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    accounts = account_service.list_accounts()
    for acc in accounts:
        if acc.name == text:
            return acc.id

    folded = [acc for acc in accounts if acc.name.casefold() == text.casefold()]
    if len(folded) == 1:
        return folded[0].id
    raise NotFoundError(f"Account '{text}' not found")
