"""
WebSocket Chat Client Example
Command line client for the chat broker with a few demo scenarios
"""

import asyncio
import json
import websockets
from typing import Any, Optional
import argparse
import sys

class ChatClient:
    """WebSocket chat client speaking the broker's event protocol"""

    def __init__(self, username: str, server_url: str = "ws://localhost:3002/ws"):
        self.username = username
        self.server_url = server_url
        self.websocket = None
        self.connection_id: Optional[str] = None
        self.running = False

    async def connect(self) -> bool:
        """Connect to the broker and read the handshake frame"""
        try:
            self.websocket = await websockets.connect(self.server_url)
            frame = json.loads(await self.websocket.recv())
            if frame.get("event") == "connected":
                self.connection_id = frame["data"]["id"]
            print(f"✅ Connected to {self.server_url} as connection {self.connection_id}")
            return True
        except Exception as e:
            print(f"❌ Connection failed: {e}")
            return False

    async def emit(self, event: str, data: Any = None) -> bool:
        """Send one event frame"""
        if not self.websocket:
            return False

        frame = {"event": event}
        if data is not None:
            frame["data"] = data

        try:
            await self.websocket.send(json.dumps(frame))
            return True
        except Exception as e:
            print(f"❌ Send failed: {e}")
            return False

    async def set_username(self) -> bool:
        print(f"📤 Setting username: {self.username}")
        return await self.emit("set username", self.username)

    async def send_message(self, message: str) -> bool:
        return await self.emit("chat message", message)

    async def send_private(self, to: str, message: str) -> bool:
        return await self.emit("private message", {"to": to, "msg": message})

    async def typing(self) -> bool:
        return await self.emit("typing")

    async def react(self, emoji: str) -> bool:
        return await self.emit("reaction", {"emoji": emoji, "user": self.username})

    async def listen_for_messages(self):
        """Print incoming events until stopped"""
        if not self.websocket:
            return

        while self.running:
            try:
                raw = await asyncio.wait_for(self.websocket.recv(), timeout=1.0)
                frame = json.loads(raw)
                event = frame.get("event")
                data = frame.get("data")

                if event == "chat message":
                    marker = "🔒 " if data.get("private") else ""
                    print(f"📨 {marker}{data.get('user')}: {data.get('msg')}")
                elif event == "system message":
                    print(f"📢 {data}")
                elif event == "typing":
                    print(f"✏️  {data} is typing...")
                elif event == "stop typing":
                    print("✏️  (stopped typing)")
                elif event == "reaction":
                    print(f"💬 reaction: {data}")
                else:
                    print(f"❓ Unknown event: {event}")

            except asyncio.TimeoutError:
                continue
            except websockets.exceptions.ConnectionClosed:
                print("🔌 Connection closed by server")
                break

    async def disconnect(self):
        """Disconnect from server"""
        self.running = False
        if self.websocket:
            await self.websocket.close()
            print("🔌 Disconnected from server")

    async def run_interactive(self):
        """Run interactive chat session"""
        if not await self.connect():
            return

        await self.set_username()
        self.running = True
        listen_task = asyncio.create_task(self.listen_for_messages())

        try:
            print("\n🎮 Interactive mode started!")
            print("Commands: /pm <connection id> <text>, /react <emoji>, /quit, or just type your message")
            print("-" * 50)

            while self.running:
                try:
                    user_input = (await asyncio.to_thread(input, f"{self.username}> ")).strip()
                except (KeyboardInterrupt, EOFError):
                    break

                if not user_input:
                    continue

                if user_input == "/quit":
                    break
                elif user_input.startswith("/pm "):
                    parts = user_input.split(" ", 2)
                    if len(parts) == 3:
                        await self.send_private(parts[1], parts[2])
                elif user_input.startswith("/react "):
                    await self.react(user_input[len("/react "):])
                else:
                    await self.typing()
                    await self.send_message(user_input)

        finally:
            self.running = False
            listen_task.cancel()
            await self.disconnect()

async def run_scenario_chat(server_url: str):
    """Scenario 1: join, welcome, broadcast and departure"""
    print("\n🧪 Scenario 1: Broadcast Chat")
    print("=" * 60)

    alice = ChatClient("Alice", server_url)
    bob = ChatClient("Bob", server_url)
    if not (await alice.connect() and await bob.connect()):
        return

    alice.running = bob.running = True
    listeners = [asyncio.create_task(c.listen_for_messages()) for c in (alice, bob)]

    await alice.set_username()
    await bob.set_username()
    await asyncio.sleep(2)

    await alice.typing()
    await alice.send_message("hi")
    await bob.react("👍")
    await asyncio.sleep(3)

    for task in listeners:
        task.cancel()
    await alice.disconnect()
    await bob.disconnect()
    print("✅ Scenario 1 completed")

async def run_scenario_private(server_url: str):
    """Scenario 2: private message to a known and an unknown connection"""
    print("\n🧪 Scenario 2: Private Messages")
    print("=" * 60)

    alice = ChatClient("Alice", server_url)
    bob = ChatClient("Bob", server_url)
    if not (await alice.connect() and await bob.connect()):
        return

    alice.running = bob.running = True
    listeners = [asyncio.create_task(c.listen_for_messages()) for c in (alice, bob)]

    await alice.set_username()
    await bob.set_username()
    await asyncio.sleep(0.5)

    await alice.send_private(bob.connection_id, "psst, Bob")
    await alice.send_private("nobody", "is anyone there?")
    await asyncio.sleep(2)

    for task in listeners:
        task.cancel()
    await alice.disconnect()
    await bob.disconnect()
    print("✅ Scenario 2 completed")

async def main():
    """Main function with command line interface"""
    parser = argparse.ArgumentParser(description="WebSocket Chat Client")
    parser.add_argument("--username", default="Guest", help="Display name")
    parser.add_argument("--server", default="ws://localhost:3002/ws", help="Server URL")
    parser.add_argument("--scenario", choices=["1", "2"], help="Run demo scenario")

    args = parser.parse_args()

    if args.scenario == "1":
        await run_scenario_chat(args.server)
    elif args.scenario == "2":
        await run_scenario_private(args.server)
    else:
        client = ChatClient(args.username, args.server)
        await client.run_interactive()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Client error: {e}")
        sys.exit(1)
