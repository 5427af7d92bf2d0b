"""
Streaming client for the Finsight API streaming endpoints.

Demonstrates how to consume Server-Sent Events from the API.
"""

import requests
import json
from typing import Iterator, Dict, Any, Optional


class StreamingFinsightClient:
    """Client for consuming Finsight event streams."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """
        Initialize the streaming client.

        Args:
            base_url: Base URL of the Finsight API
        """
        self.base_url = base_url.rstrip('/')

    def _stream(self, path: str, payload: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """
        POST a payload and yield ``{"event", "data"}`` dicts until a terminal event.
        """
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                stream=True,
                headers={"Accept": "text/event-stream"}
            )
            if response.status_code != 200:
                yield {"event": "error", "data": {"message": f"HTTP {response.status_code}: {response.text}"}}
                return

            event_name = None
            for line in response.iter_lines(decode_unicode=True):
                if line.startswith("event: "):
                    event_name = line[7:]
                elif line.startswith("data: ") and event_name:
                    try:
                        data = json.loads(line[6:])  # Remove "data: " prefix
                    except json.JSONDecodeError:
                        continue
                    yield {"event": event_name, "data": data}

                    # Stop on terminal events
                    if event_name in ("done", "error"):
                        break
                    event_name = None

        except requests.exceptions.RequestException as e:
            yield {"event": "error", "data": {"message": f"Request failed: {str(e)}"}}

    def stream_chat(self, query: str) -> Iterator[Dict[str, Any]]:
        """Stream the answer to a free-text query."""
        return self._stream("/stream/chat", {"query": query})

    def stream_analysis(self, subject: str, time_horizon: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Stream a subject analysis."""
        payload = {"subject": subject}
        if time_horizon:
            payload["time_horizon"] = time_horizon
        return self._stream("/stream/analysis", payload)


def print_stream(events: Iterator[Dict[str, Any]]) -> None:
    """Pretty-print one session's events."""
    fragments = 0
    for item in events:
        event, data = item["event"], item["data"]

        if event == "sources":
            print(f"📚 {len(data)} sources:")
            for source in data:
                print(f"   - {source.get('title') or source.get('url')} ({source.get('relevance_score')})")

        elif event == "processing":
            print(f"⏳ {data}")

        elif event == "content":
            fragments += 1
            print(data, end="", flush=True)

        elif event == "metrics":
            print("\n📊 Key metrics:")
            for name, value in data.items():
                if not name.startswith("_"):
                    print(f"   {name}: {value}")

        elif event == "done":
            print(f"\n✅ Done ({fragments} fragments, cached={data.get('cached')}"
                  + (f", age={data.get('cache_age')}s" if data.get("cached") else "")
                  + (f", recommendation={data['recommendation']}" if data.get("recommendation") else "")
                  + ")")

        elif event == "error":
            print(f"\n❌ Stream error: {data.get('message')}")


def test_streaming():
    """Stream a few sample queries."""
    client = StreamingFinsightClient()

    print("🌊 Testing Finsight Streaming API")
    print("=" * 50)

    test_queries = [
        "What's the market sentiment on NVDA?",
        "How did semiconductor stocks perform this quarter?"
    ]

    for i, query in enumerate(test_queries, 1):
        print(f"\n{i}. Streaming: {query}")
        print("-" * 40)
        print_stream(client.stream_chat(query))

    print("\n" + "=" * 50)
    print("✅ Streaming tests completed!")


def test_analysis_streaming(subject: str = "NVDA"):
    """Stream the same analysis twice; the second run replays from cache."""
    client = StreamingFinsightClient()

    print(f"📈 Streaming analysis for {subject}")
    print("=" * 50)

    for attempt in (1, 2):
        print(f"\nRun {attempt}")
        print("-" * 40)
        print_stream(client.stream_analysis(subject, "medium-term"))


def interactive_streaming():
    """Interactive streaming mode."""
    client = StreamingFinsightClient()

    print("🎯 Interactive Finsight Client")
    print("=" * 50)
    print("Type 'quit' to exit, '$SYMBOL' for a stock analysis")
    print()

    while True:
        try:
            text = input("Query: ").strip()

            if text.lower() == 'quit':
                break
            elif not text:
                continue

            print("-" * 40)
            if text.startswith("$"):
                horizon = input("Time horizon (medium-term): ").strip() or None
                print_stream(client.stream_analysis(text[1:], horizon))
            else:
                print_stream(client.stream_chat(text))
            print("\n" + "-" * 50 + "\n")

        except KeyboardInterrupt:
            break


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        if sys.argv[1] == "interactive":
            interactive_streaming()
        elif sys.argv[1] == "analysis":
            test_analysis_streaming(*sys.argv[2:3])
        else:
            test_streaming()
    else:
        test_streaming()
