import asyncio
import os
import socket
from contextlib import closing

import uvicorn
import app.main as main_app


def _find_free_port(preferred: int = 8000) -> int:
	# Try preferred, else let OS choose
	with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
		try:
			s.bind(("127.0.0.1", preferred))
			return preferred
		except OSError:
			pass
	with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
		s.bind(("127.0.0.1", 0))
		return s.getsockname()[1]


async def _serve() -> None:
	host = os.getenv("HOST", "127.0.0.1")
	port = int(os.getenv("PORT") or _find_free_port(8000))
	config = uvicorn.Config(app=main_app.app, host=host, port=port, log_level="info")
	server = uvicorn.Server(config)
	await server.serve()


def main() -> None:
	asyncio.run(_serve())


if __name__ == "__main__":
	main()
