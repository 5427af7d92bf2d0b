#!/usr/bin/env python3
"""
Startup script for the Finsight API server.

Provides commands for checking the environment, starting the server and
running the streaming client.
"""

import os
import sys
import subprocess
import argparse
from pathlib import Path


def check_environment():
    """Check that search and at least one generative provider are configured."""
    provider_vars = ["OPENAI_API_KEY", "COHERE_API_KEY"]
    optional_vars = ["CACHE_BACKEND", "LOG_LEVEL", "LOG_FILE_PATH"]

    print("🔍 Checking environment variables...")

    if not os.getenv("TAVILY_API_KEY"):
        print("❌ Missing required environment variable: TAVILY_API_KEY")
        print("   Please set it in your .env file or environment")
        return False

    configured = [var for var in provider_vars if os.getenv(var)]
    if not configured:
        print(f"❌ Set at least one of: {', '.join(provider_vars)}")
        return False

    print(f"✅ Providers configured: {', '.join(configured)}")
    if "OPENAI_API_KEY" not in configured:
        print("ℹ️  No OpenAI key: relevance ranking falls back to keyword scoring")

    available_optional = [var for var in optional_vars if os.getenv(var)]
    if available_optional:
        print(f"ℹ️  Optional settings found: {', '.join(available_optional)}")

    return True


def install_dependencies():
    """Install required dependencies using uv."""
    print("📦 Installing dependencies with uv...")
    try:
        subprocess.run(["uv", "sync"], check=True)
        print("✅ Dependencies installed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install dependencies: {e}")
        print("💡 Make sure uv is installed: pip install uv")
        return False


def start_server(host="0.0.0.0", port=8000, reload=True):
    """Start the FastAPI server."""
    print(f"🚀 Starting Finsight API server on {host}:{port}")

    cmd = [
        "uv", "run", "uvicorn",
        "finsight.api.main:app",
        "--host", host,
        "--port", str(port)
    ]

    if reload:
        cmd.append("--reload")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to start server: {e}")


def run_streaming_client(*args):
    """Run the streaming client with the given arguments."""
    print("🌊 Running streaming client...")
    try:
        subprocess.run(["uv", "run", "streaming_client.py", *args], check=True)
    except subprocess.CalledProcessError as e:
        print(f"❌ Streaming client failed: {e}")


def main():
    """Main CLI interface."""
    parser = argparse.ArgumentParser(description="Finsight API Server Management")
    parser.add_argument("command", choices=["start", "install", "check", "stream", "stream-analysis", "stream-interactive"],
                        help="Command to execute")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    args = parser.parse_args()

    # Change to script directory
    script_dir = Path(__file__).parent
    os.chdir(script_dir)

    if args.command == "check":
        if check_environment():
            print("✅ Environment check passed")
            sys.exit(0)
        else:
            print("❌ Environment check failed")
            sys.exit(1)

    elif args.command == "install":
        if install_dependencies():
            print("✅ Installation completed")
            sys.exit(0)
        else:
            print("❌ Installation failed")
            sys.exit(1)

    elif args.command == "start":
        if not check_environment():
            print("❌ Environment check failed, cannot start server")
            sys.exit(1)

        start_server(args.host, args.port, not args.no_reload)

    elif args.command == "stream":
        run_streaming_client()

    elif args.command == "stream-analysis":
        run_streaming_client("analysis")

    elif args.command == "stream-interactive":
        run_streaming_client("interactive")


if __name__ == "__main__":
    main()
