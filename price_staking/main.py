"""Price Staking CLI."""
import sys
from datetime import datetime
from typing import Callable, Optional
import click
from loguru import logger

from .core.config import StakingConfig, configure_logging
from .core.errors import StakingError
from .core.oracle import FixedPriceOracle, PriceOracleAdapter
from .core.sandbox import DEFAULT_PRICE, DEFAULT_TOKEN_DECIMALS, Sandbox
from .core.token import InMemoryTokenLedger


def format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "never"
    return datetime.fromtimestamp(timestamp).strftime('%Y-%m-%d %H:%M:%S')


def run_in_sandbox(config: StakingConfig, action: Callable[[Sandbox], None],
                   save: bool = True) -> None:
    """Load the sandbox, run one action against it and persist the result.

    Staking and state errors are logged and end the command with exit code 1.
    """
    try:
        sandbox = Sandbox.load(config)
        action(sandbox)
        if save:
            sandbox.save()
    except (StakingError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)


@click.group()
@click.version_option(package_name="price-staking")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='YAML configuration file')
@click.option('--state-dir', default=None, help='Directory holding the sandbox state')
@click.pass_context
def cli(ctx, config_path: Optional[str], state_dir: Optional[str]):
    """Stake tokens and earn price-driven rewards in a local sandbox."""
    try:
        config = StakingConfig.from_file(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--config')
    if state_dir:
        config.state_dir = state_dir
    configure_logging(config.log_level)
    ctx.obj = config


@cli.command()
@click.option('--token-decimals', default=DEFAULT_TOKEN_DECIMALS, show_default=True,
              help='Decimals of the staked token')
@click.option('--price', default=DEFAULT_PRICE, show_default=True,
              help='Initial oracle price (fixed-point)')
@click.pass_obj
def init(config: StakingConfig, token_decimals: int, price: int):
    """Create a fresh sandbox, discarding any existing state."""
    try:
        sandbox = Sandbox(
            config=config,
            token=InMemoryTokenLedger(decimals=token_decimals),
            oracle=FixedPriceOracle(price, config.price_decimals),
        )
        sandbox.save()
    except StakingError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    click.echo(f"Initialized sandbox at {sandbox.path}")


@cli.command()
@click.argument('account')
@click.argument('amount', type=int)
@click.pass_obj
def faucet(config: StakingConfig, account: str, amount: int):
    """Mint test tokens to ACCOUNT."""
    def action(sandbox: Sandbox):
        sandbox.token.mint(account, amount)
        click.echo(f"Minted {amount} to {account}")

    run_in_sandbox(config, action)


@cli.command()
@click.argument('account')
@click.argument('amount', type=int)
@click.pass_obj
def approve(config: StakingConfig, account: str, amount: int):
    """Allow the engine to pull AMOUNT tokens from ACCOUNT."""
    def action(sandbox: Sandbox):
        sandbox.token.approve(account, sandbox.engine.address, amount)
        click.echo(f"{account} approved {amount} for {sandbox.engine.address}")

    run_in_sandbox(config, action)


@cli.command()
@click.argument('account')
@click.argument('amount', type=int)
@click.pass_obj
def stake(config: StakingConfig, account: str, amount: int):
    """Stake AMOUNT tokens from ACCOUNT."""
    def action(sandbox: Sandbox):
        sandbox.engine.stake(account, amount)
        click.echo(f"Staked {amount} for {account}")

    run_in_sandbox(config, action)


@cli.command()
@click.argument('account')
@click.pass_obj
def claim(config: StakingConfig, account: str):
    """Claim the reward accrued by ACCOUNT."""
    def action(sandbox: Sandbox):
        reward = sandbox.engine.claim(account)
        if reward > 0:
            click.echo(f"Claimed {reward} for {account}")
        else:
            click.echo("No rewards to claim.")

    run_in_sandbox(config, action)


@cli.command()
@click.argument('account')
@click.pass_obj
def unstake(config: StakingConfig, account: str):
    """Withdraw the whole stake of ACCOUNT."""
    def action(sandbox: Sandbox):
        amount = sandbox.engine.unstake(account)
        click.echo(f"Unstaked {amount} for {account}")

    run_in_sandbox(config, action)


@cli.command()
@click.option('--set', 'new_price', type=int, default=None, help='Set the oracle price')
@click.option('--fetch', 'feed_url', default=None, help='Set the oracle price from an HTTP feed')
@click.pass_obj
def price(config: StakingConfig, new_price: Optional[int], feed_url: Optional[str]):
    """Show or update the oracle price."""
    def action(sandbox: Sandbox):
        if feed_url:
            try:
                from .core.feeds import HttpPriceOracle
            except ImportError as e:
                logger.error(f"Fetching prices needs the feeds extra: pip install 'price-staking[feeds]' ({e})")
                sys.exit(1)
            reading = PriceOracleAdapter(HttpPriceOracle(feed_url), config.price_decimals).latest()
            sandbox.oracle.set_price(reading.value)
        elif new_price is not None:
            sandbox.oracle.set_price(new_price)
        value = sandbox.engine.get_latest_price()
        click.echo(f"Price: {value} ({sandbox.oracle.decimals} decimals)")

    run_in_sandbox(config, action, save=bool(feed_url) or new_price is not None)


@cli.command()
@click.argument('account')
@click.pass_obj
def preview(config: StakingConfig, account: str):
    """Show the reward ACCOUNT would receive by claiming now."""
    def action(sandbox: Sandbox):
        click.echo(f"Pending reward for {account}: {sandbox.engine.calculate_reward(account)}")

    run_in_sandbox(config, action, save=False)


@cli.command()
@click.argument('account')
@click.pass_obj
def status(config: StakingConfig, account: str):
    """Show stake, balance and pending reward of ACCOUNT."""
    def action(sandbox: Sandbox):
        engine = sandbox.engine
        click.echo(f"\nStatus for {account}:")
        click.echo("-" * 50)
        click.echo(f"Staked: {engine.staked(account)}")
        click.echo(f"Last Claim: {format_timestamp(engine.last_claim(account))}")
        click.echo(f"Balance: {sandbox.token.balance_of(account)}")
        click.echo(f"Allowance: {sandbox.token.allowance(account, engine.address)}")
        click.echo(f"Pending Reward: {engine.calculate_reward(account)}")

    run_in_sandbox(config, action, save=False)


@cli.command()
@click.option('--limit', default=10, help='Number of events to show')
@click.pass_obj
def events(config: StakingConfig, limit: int):
    """Show the most recent staking events."""
    def action(sandbox: Sandbox):
        recorded = list(sandbox.engine.events)[-limit:] if limit > 0 else []
        if not recorded:
            logger.info("No events recorded")
            return

        click.echo(f"\nLast {len(recorded)} events:")
        click.echo("-" * 80)
        click.echo(f"{'Event':<16}{'Account':<30}{'Amount':<20}{'Date':<20}")
        click.echo("-" * 80)
        for event in recorded:
            amount = getattr(event, 'reward', None) or getattr(event, 'amount', 0)
            click.echo(
                f"{event.event:<16}{event.account:<30}"
                f"{amount:<20}{format_timestamp(event.timestamp):<20}"
            )

    run_in_sandbox(config, action, save=False)


if __name__ == "__main__":
    cli()
