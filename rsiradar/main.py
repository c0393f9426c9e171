"""RsiRadar — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
one-shot and periodic scans.
"""

import logging

from fastapi import FastAPI

from rsiradar.api.routers import router

app = FastAPI(title="RsiRadar Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("rsiradar")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio
    import signal

    from rsiradar.api.routers import configure_routers
    from rsiradar.config import load_config
    from rsiradar.market.binance_client import BinanceClient
    from rsiradar.scan_manager import ScanManager
    from rsiradar.scanner import MarketScanner

    parser = argparse.ArgumentParser(description="RsiRadar market scanner")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan, print the report and exit",
    )
    parser.add_argument(
        "--interval",
        type=int,
        help="Minutes between scans (default: SCAN_INTERVAL_MINUTES)",
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Run the scan loop without the API server",
    )
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    scanner = MarketScanner(config, BinanceClient(config))
    interval_minutes = args.interval or config.scan_interval_minutes
    manager = ScanManager(scanner, interval_seconds=interval_minutes * 60)

    if args.once:
        asyncio.run(_run_single_scan(manager))
        return

    configure_routers(scan_manager=manager)

    def handle_shutdown(signum, frame):
        logger.info("Shutdown signal received — stopping gracefully.")
        manager.stop()

    signal.signal(signal.SIGINT, handle_shutdown)

    if args.no_api:
        asyncio.run(_run_scans_only(manager))
    else:
        asyncio.run(_run_with_api(manager, config.api_port))


async def _run_single_scan(manager) -> None:
    """Run one scan and print both reports."""
    from rsiradar.cli.report_printer import print_report

    result = await manager.run_once()
    if result is None:
        logger.error("Scan failed: %s", manager.get_status()["last_error"])
        raise SystemExit(1)
    print_report(result)


async def _run_scans_only(manager) -> None:
    """Run the periodic scan loop without the API server."""
    logger.info("Starting RsiRadar scan loop (no API).")
    await manager.run()
    logger.info("RsiRadar scan loop stopped.")


async def _run_with_api(manager, port: int = 8080) -> None:
    """Start the API server and the scan loop concurrently."""
    import asyncio

    import uvicorn

    uvi_config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
    server = uvicorn.Server(uvi_config)

    async def _run_server():
        await server.serve()
        manager.stop()

    logger.info("API available at http://localhost:%d", port)
    results = await asyncio.gather(
        _run_server(),
        manager.run(),
        return_exceptions=True,
    )
    logger.info("RsiRadar stopped. Results: %s", [type(r).__name__ for r in results])


if __name__ == "__main__":
    _run_cli()
