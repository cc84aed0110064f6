"""
Run the pose streaming client against a scoring server.

Connects, keeps the channel alive and logs connection state and scores
until interrupted. Pose submission is driven by the embedding application.
"""
import argparse
import asyncio
import logging
from typing import List, Optional

from pose_stream.core.config import settings
from pose_stream.domain.streaming.connection_state import ConnectionState
from pose_stream.services.pose_streaming_service import PoseStreamingClient

logger = logging.getLogger("pose_stream")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pose keypoint streaming client")
    parser.add_argument("--host", default=settings.SERVER_HOST, help="Scoring server host")
    parser.add_argument("--port", type=int, default=settings.SERVER_PORT, help="Scoring server port")
    parser.add_argument("--duration", type=float, default=None,
                        help="Seconds to stay connected (default: until Ctrl+C)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def run_client(host: str, port: int, duration: Optional[float] = None) -> None:
    run_settings = settings.model_copy(update={"SERVER_HOST": host, "SERVER_PORT": port})
    client = PoseStreamingClient.from_settings(run_settings)

    def on_state(state: ConnectionState) -> None:
        logger.info(f"Channel {'connected' if state is ConnectionState.NAMESPACE_CONNECTED else state.value}")

    def on_score(score: int) -> None:
        logger.info(f"Score received: {score}")

    client.add_state_listener(on_state)
    client.set_score_callback(on_score)

    await client.start()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await client.stop()
        logger.info(f"Session summary: {client.get_status()}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level="DEBUG" if args.debug else settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f"{settings.APP_NAME} starting")
    try:
        asyncio.run(run_client(args.host, args.port, args.duration))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
