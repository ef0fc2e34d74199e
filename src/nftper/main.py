import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from src.nftper.core.settings import settings
from src.nftper.domain.exceptions import NftperError
from src.nftper.domain.value_objects import JobParameters
from src.nftper.infra.event_bus import EventBus
from src.nftper.infra.history import MemoryHistory
from src.nftper.infra.http_transport import HttpTransportClient
from src.nftper.infra.unload import AtexitUnloadHook
from src.nftper.services.lifecycle_controller import RequestLifecycleController
from src.nftper.services.navigation_sync import NavigationStateSync, wallet_path
from src.nftper.ui.console import ConsolePresenter

logger = logging.getLogger("nftper")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="nftper", description="Check NFT flip profits for a wallet via the NFTPER queue")
    p.add_argument("wallet", nargs="?", help="Wallet address (0x...)")
    p.add_argument("--url", help="Deep link to open instead of a wallet, e.g. /0x... or /?wallet=0x...")
    p.add_argument("--timeframe", default=settings.DEFAULT_TIMEFRAME, help="1w, 1m, 3m, 6m, 1y or all")
    p.add_argument(
        "--chains",
        default=",".join(settings.DEFAULT_CHAINS),
        help="Comma-separated chains: ethereum,polygon,base,arbitrum,hyperevm",
    )
    p.add_argument("--api-url", default=settings.API_URL)
    return p.parse_args(argv)


async def run_check(args: argparse.Namespace) -> int:
    chains = [c.strip() for c in args.chains.split(",") if c.strip()]

    bus = EventBus()
    presenter = ConsolePresenter(bus)
    history = MemoryHistory(args.url or "/")

    async with HttpTransportClient(args.api_url) as transport:
        async with RequestLifecycleController(
            transport,
            bus,
            poll_interval=settings.poll_interval,
            unload_hook=AtexitUnloadHook(),
        ) as controller:
            nav = NavigationStateSync(
                controller,
                history,
                bus,
                default_timeframe=args.timeframe,
                chains_provider=lambda: chains,
            )

            try:
                if args.wallet:
                    await controller.submit(args.wallet, JobParameters.of(args.timeframe, chains))
                else:
                    await nav.start()
            except NftperError as e:
                # SubmissionError презентер уже напечатал
                if not presenter.finished.is_set():
                    print(f"Error: {e}", file=sys.stderr)
                return 2

            try:
                await presenter.finished.wait()
            except asyncio.CancelledError:
                await controller.cancel()
                raise

            if presenter.error is not None:
                logger.warning("job %s failed on the backend: %s", presenter.error.job_id, presenter.error.message)
            elif presenter.succeeded and controller.state.job is not None:
                logger.info("Share link: %s%s", settings.SITE_ORIGIN, wallet_path(controller.state.job.subject))

    return 0 if presenter.succeeded else 1


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL)

    if not args.wallet and not args.url:
        print("Please provide a wallet address or --url", file=sys.stderr)
        return 2

    try:
        return asyncio.run(run_check(args))
    except KeyboardInterrupt:
        print("Cancelled", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(run())
