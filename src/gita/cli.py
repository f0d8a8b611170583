"""Command-line interface for the Bhagavad Gita Reader."""

import sys

HELP_TEXT = """
Bhagavad Gita Reader - CLI

Usage:
    gita                  Start the web server (default)
    gita serve            Start the web server
    gita start            Start the web server
    gita run              Start the web server
    gita --port PORT      Specify port (default: 8000)
    gita --host HOST      Specify host (default: 0.0.0.0)
    gita --no-reload      Disable auto-reload
    gita --help           Show this help message
    gita --version        Show the version

Environment:
    GITA_API_BASE_URL     Chapter/slok API root
    MURF_API_KEY          Enables the Murf AI voice buttons
    GITA_RELAY_PROXY_URL  Proxy for the relay voice provider
    GITA_RELAY_TARGET_URL Synthesis endpoint behind the proxy

Examples:
    gita                      # Start server on http://localhost:8000
    gita --port 3000          # Start on port 3000
    gita --port=3000          # Alternative syntax
    gita --host 127.0.0.1     # Listen only on localhost

Once started, visit http://localhost:PORT in your browser.
"""


def serve(reload=True, host="0.0.0.0", port=8000):
    """Start the web server."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is required to run the web server.")
        print("Install it with: pip install uvicorn")
        sys.exit(1)

    from .logging_utils import build_uvicorn_log_config

    print("📖 Starting Bhagavad Gita Reader...")
    print(f"🌐 Visit: http://localhost:{port}")
    if reload:
        print("🔄 Auto-reload enabled")
    print(f"🔌 Listening on: {host}:{port}")
    print("⌨️  Press Ctrl+C to stop")
    print()

    try:
        uvicorn.run(
            "gita.app:app",
            host=host,
            port=port,
            reload=reload,
            log_config=build_uvicorn_log_config(),
        )
    except KeyboardInterrupt:
        print("\n👋 Stopped server")


def _extract_option(args, name):
    """Pull ``--name VALUE`` or ``--name=VALUE`` out of *args*; returns (value, remaining)."""
    for i, arg in enumerate(args):
        if arg == name and i + 1 < len(args):
            return args[i + 1], args[:i] + args[i + 2:]
        if arg.startswith(f'{name}='):
            return arg.split('=', 1)[1], args[:i] + args[i + 1:]
    return None, args


def main(argv=None):
    """Main CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)

    reload = True
    host = "0.0.0.0"
    port = 8000

    value, args = _extract_option(args, '--host')
    if value is not None:
        host = value

    value, args = _extract_option(args, '--port')
    if value is not None:
        try:
            port = int(value)
        except ValueError:
            print(f"Error: Invalid port number '{value}'")
            sys.exit(1)

    if '--no-reload' in args:
        reload = False
    args = [a for a in args if a not in ['--reload', '-r', '--no-reload']]

    if not args or args[0] in ['serve', 'start', 'run']:
        serve(reload=reload, host=host, port=port)
    elif args[0] in ['--help', '-h', 'help']:
        print(HELP_TEXT)
    elif args[0] in ['--version', '-v', 'version']:
        from . import __version__
        print(f"gita {__version__}")
    else:
        print(f"Unknown command: {args[0]}")
        print("Run 'gita --help' for usage information")
        sys.exit(1)


if __name__ == '__main__':
    main()
