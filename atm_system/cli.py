"""
CLI interface for the ATM system.

This module provides a command-line interface for customers and
administrators on top of the transaction engine.
"""

import click
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from .config import ATMConfig
from .exceptions import ATMError, AuthenticationError
from .auth import RejectReason
from .models import NoteCounts, Session
from .transaction_engine import TransactionEngine


class ATMCLI:
    """CLI wrapper for ATM operations."""

    def __init__(self, config: Optional[ATMConfig] = None):
        """Initialize CLI with the configured stores."""
        self.config = config or ATMConfig()
        self.engine = TransactionEngine.from_config(self.config)

    def format_currency(self, amount: Decimal) -> str:
        """Format currency for display."""
        return f"{amount:,.2f}"

    def parse_amount(self, amount_str: str) -> Decimal:
        """Parse amount input."""
        try:
            return Decimal(str(amount_str).replace(',', '').strip())
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {amount_str}")

    def check_admin_pin(self, pin: str) -> None:
        if str(pin) != self.config.admin_pin:
            raise AuthenticationError("Invalid admin PIN")

    def login(self, account_number: int, pin: Optional[str] = None) -> Session:
        """
        Authenticate a customer.

        A PIN given up front gets exactly one attempt; otherwise the PIN is
        prompted for until it is correct or the account locks.
        """
        supplied = iter([pin]) if pin is not None else None

        def pin_supplier(attempts_remaining: int) -> Optional[str]:
            if supplied is not None:
                return next(supplied, None)
            return click.prompt(f"PIN ({attempts_remaining} attempts left)", hide_input=True)

        result = self.engine.authenticate(account_number, pin_supplier)
        if result.reason is RejectReason.CANCELLED:
            raise AuthenticationError(f"Incorrect PIN. Attempts remaining: {result.attempts_remaining}")
        session = result.raise_for_state()

        account = self.engine.directory.find(account_number)
        click.echo(f"Login successful. Welcome, {account.name}!")
        return session


def echo_notes(combination: NoteCounts) -> None:
    for denomination, count in combination.items():
        if count:
            click.echo(f"  {denomination:>4} x {count}")


@click.group()
@click.option('--data-dir', envvar='ATM_DATA_DIR', default='.', help='Directory holding the ATM data files')
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level')
@click.pass_context
def cli(ctx, data_dir, log_level):
    """ATM Withdrawal System CLI"""
    logging.basicConfig(level=getattr(logging, log_level.upper()),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj['cli'] = ATMCLI(ATMConfig.from_env(data_dir=data_dir))


@cli.command()
@click.pass_context
def init_sample(ctx):
    """Create sample accounts if none exist."""
    atm_cli = ctx.obj['cli']

    try:
        created = atm_cli.engine.seed_sample_accounts()
        if created:
            click.echo(f"✅ Created {len(created)} sample accounts")
            for account in created:
                click.echo(f"  {account.account_number} {account.name}: {atm_cli.format_currency(account.balance)}")
        else:
            click.echo("ℹ️ Accounts already exist, nothing created")

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--account-number', type=int, prompt='Account number', help='Account number')
@click.option('--pin', default=None, help='Account PIN (prompted when omitted)')
@click.pass_context
def balance(ctx, account_number, pin):
    """Check account balance."""
    atm_cli = ctx.obj['cli']

    try:
        session = atm_cli.login(account_number, pin)
        inquiry = atm_cli.engine.balance_inquiry(session)
        click.echo(f"\n💰 Account Balance")
        click.echo(f"Account: {account_number}")
        click.echo(f"Available Balance: {atm_cli.format_currency(inquiry.balance)}")
        if not inquiry.ledger_recorded:
            click.echo("⚠️ Transaction could not be written to the ledger", err=True)
        atm_cli.engine.logout(session)

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--account-number', type=int, prompt='Account number', help='Account number')
@click.option('--pin', default=None, help='Account PIN (prompted when omitted)')
@click.option('--amount', prompt='Withdrawal amount (multiples of 100)', help='Amount to withdraw')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_context
def withdraw(ctx, account_number, pin, amount, yes):
    """Withdraw cash from an account."""
    atm_cli = ctx.obj['cli']

    def confirm(combination):
        click.echo("Dispensing:")
        echo_notes(combination)
        return yes or click.confirm("Confirm withdrawal?", default=False)

    try:
        withdraw_amount = atm_cli.parse_amount(amount)
        session = atm_cli.login(account_number, pin)
        result = atm_cli.engine.withdraw(session, withdraw_amount, confirm)

        if result.completed:
            click.echo(f"✅ Withdrawal successful!")
            click.echo(f"Amount: {atm_cli.format_currency(Decimal(result.amount))}")
            click.echo(f"New Balance: {atm_cli.format_currency(result.balance)}")
            if not result.ledger_recorded:
                click.echo("⚠️ Transaction could not be written to the ledger", err=True)
        else:
            click.echo("Withdrawal cancelled.")
        atm_cli.engine.logout(session)

    except (ATMError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--account-number', type=int, prompt='Account number', help='Account number')
@click.option('--pin', default=None, help='Account PIN (prompted when omitted)')
@click.pass_context
def history(ctx, account_number, pin):
    """Show transaction history for an account."""
    atm_cli = ctx.obj['cli']

    try:
        session = atm_cli.login(account_number, pin)
        records = list(atm_cli.engine.history(account_number))
        atm_cli.engine.logout(session)

        if not records:
            click.echo("No transactions found for this account.")
            return

        click.echo(f"\n📋 Transaction History for Account {account_number}")
        click.echo(f"{'Date':<20} {'Type':<16} {'Amount':>12} {'Balance':>12}")
        click.echo(f"{'-'*63}")
        for record in records:
            kind = getattr(record.kind, 'value', record.kind)
            click.echo(
                f"{record.timestamp.strftime('%Y-%m-%d %H:%M:%S'):<20} "
                f"{kind:<16} "
                f"{atm_cli.format_currency(record.amount):>12} "
                f"{atm_cli.format_currency(record.balance_after):>12}"
            )

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--admin-pin', prompt='Admin PIN', hide_input=True, help='Administrator PIN')
@click.pass_context
def inventory(ctx, admin_pin):
    """Show the ATM note inventory."""
    atm_cli = ctx.obj['cli']

    try:
        atm_cli.check_admin_pin(admin_pin)
        notes = atm_cli.engine.inventory
        click.echo(f"\n🏧 ATM Inventory")
        for denomination, count in notes.items():
            click.echo(f"  {denomination:>4} x {count}")
        click.echo(f"Total Cash: {atm_cli.format_currency(Decimal(notes.total_cash()))}")

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--admin-pin', prompt='Admin PIN', hide_input=True, help='Administrator PIN')
@click.option('--note-2000', type=int, default=0, help='Additional 2000 notes')
@click.option('--note-500', type=int, default=0, help='Additional 500 notes')
@click.option('--note-200', type=int, default=0, help='Additional 200 notes')
@click.option('--note-100', type=int, default=0, help='Additional 100 notes')
@click.pass_context
def refill(ctx, admin_pin, note_2000, note_500, note_200, note_100):
    """Load additional notes into the ATM."""
    atm_cli = ctx.obj['cli']

    try:
        atm_cli.check_admin_pin(admin_pin)
        notes = atm_cli.engine.refill(NoteCounts(note_2000, note_500, note_200, note_100))
        click.echo("✅ ATM refilled successfully.")
        click.echo(f"Total Cash: {atm_cli.format_currency(Decimal(notes.total_cash()))}")

    except (ATMError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--admin-pin', prompt='Admin PIN', hide_input=True, help='Administrator PIN')
@click.option('--account-number', type=int, prompt='Account number to unlock', help='Account number')
@click.pass_context
def unlock(ctx, admin_pin, account_number):
    """Unlock an account after failed logins."""
    atm_cli = ctx.obj['cli']

    try:
        atm_cli.check_admin_pin(admin_pin)
        atm_cli.engine.unlock_account(account_number)
        click.echo(f"✅ Account {account_number} unlocked.")

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


@cli.command()
@click.option('--admin-pin', prompt='Admin PIN', hide_input=True, help='Administrator PIN')
@click.pass_context
def accounts(ctx, admin_pin):
    """List all accounts."""
    atm_cli = ctx.obj['cli']

    try:
        atm_cli.check_admin_pin(admin_pin)
        all_accounts = atm_cli.engine.list_accounts()
        if not all_accounts:
            click.echo("No accounts found.")
            return

        click.echo(f"{'Account':<10} {'Name':<20} {'Balance':>12} {'Locked':<6}")
        click.echo(f"{'-'*51}")
        for account in all_accounts:
            click.echo(
                f"{account.account_number:<10} {account.name:<20} "
                f"{atm_cli.format_currency(account.balance):>12} "
                f"{'Yes' if account.locked else 'No':<6}"
            )

    except ATMError as e:
        click.echo(f"❌ Error: {e}", err=True)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
