"""Peer swarm: independent agents exchanging messages over asyncio queues."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from ..config import SWARM_TICK_SECONDS
from ..models.agent import MessageKind, SwarmMessage
from .agent import Agent

logger = logging.getLogger(__name__)

INBOX_SIZE = 100
SUMMARY_PROMPT = "Summarize what you've accomplished so far in one sentence."


class SwarmAgent:
    """One swarm unit: an agent, an inbox and handles to its peers' inboxes.

    The run loop handles one event at a time: an inbox message, or a timer
    tick when no message arrives before the next tick is due. Units share no
    mutable state; everything they exchange goes through the queues.
    """

    def __init__(
        self,
        agent_id: str,
        agent: Agent,
        *,
        tick_interval: float = SWARM_TICK_SECONDS,
        inbox_size: int = INBOX_SIZE,
    ):
        self.agent_id = agent_id
        self.agent = agent
        self.tick_interval = tick_interval
        self.inbox: asyncio.Queue[SwarmMessage] = asyncio.Queue(maxsize=inbox_size)
        self.peers: Dict[str, asyncio.Queue[SwarmMessage]] = {}
        self.last_summary: Optional[str] = None
        self.dropped = 0
        self._history: List[str] = []
        self._summarized_len = 0
        self._stopping = False

    @property
    def history(self) -> Tuple[str, ...]:
        return tuple(self._history)

    def connect(self, other: "SwarmAgent") -> None:
        if other.agent_id != self.agent_id:
            self.peers[other.agent_id] = other.inbox

    def stop(self) -> None:
        """Ask the run loop to exit after the event it is handling."""
        self._stopping = True
        try:
            self.inbox.put_nowait(SwarmMessage.shutdown())
        except asyncio.QueueFull:
            pass  # the flag is checked after every event

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.tick_interval
        logger.info("swarm.agent.start id=%s peers=%d", self.agent_id, len(self.peers))

        while not self._stopping:
            timeout = max(0.0, next_tick - loop.time())
            try:
                msg = await asyncio.wait_for(self.inbox.get(), timeout=timeout)
            except asyncio.TimeoutError:
                await self._on_tick()
                next_tick = loop.time() + self.tick_interval
                continue

            if msg.kind is MessageKind.SHUTDOWN:
                break
            try:
                await self._handle(msg)
            except Exception:
                logger.exception("swarm.agent.error id=%s kind=%s", self.agent_id, msg.kind.value)

        discarded = 0
        while not self.inbox.empty():
            self.inbox.get_nowait()
            discarded += 1
        logger.info("swarm.agent.stop id=%s discarded=%d", self.agent_id, discarded)

    async def _handle(self, msg: SwarmMessage) -> None:
        if msg.kind is MessageKind.TASK:
            result = await asyncio.to_thread(self.agent.prompt, msg.content)
            self._history.append(f"Task: {msg.content} | Result: {result}")
            self.broadcast(SwarmMessage(kind=MessageKind.RESPONSE, content=result, sender=self.agent_id))
        elif msg.kind is MessageKind.RESPONSE:
            self._history.append(f"From {msg.sender}: {msg.content}")
        elif msg.kind is MessageKind.TRIGGER:
            result = await asyncio.to_thread(self.agent.prompt, msg.content)
            self._history.append(f"Trigger: {msg.content} | Result: {result}")

    async def _on_tick(self) -> None:
        if not self._history or len(self._history) == self._summarized_len:
            return
        self._summarized_len = len(self._history)
        try:
            self.last_summary = await asyncio.to_thread(self.agent.prompt, self.summary_prompt())
        except Exception:
            logger.exception("swarm.tick.error id=%s", self.agent_id)
            return
        logger.info("swarm.tick id=%s summary=%r", self.agent_id, self.last_summary)

    def summary_prompt(self) -> str:
        """Self-summary request carrying everything this unit has recorded."""
        return SUMMARY_PROMPT + "\n\nYour activity so far:\n" + "\n".join(self._history)

    def broadcast(self, msg: SwarmMessage) -> None:
        """Send to every peer without waiting; full inboxes drop the message."""
        for peer_id, queue in self.peers.items():
            try:
                queue.put_nowait(msg)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning("swarm.drop from=%s to=%s kind=%s", self.agent_id, peer_id, msg.kind.value)


class Swarm:
    """A set of fully-connected SwarmAgents.

    Usage:
        swarm = Swarm()
        for name in ("Tom", "Richard", "Harry"):
            swarm.add(name, make_agent(name))
        swarm.connect_all()
        await swarm.start()
        await swarm.send("Tom", SwarmMessage.task("Write a haiku"))
        await swarm.shutdown()
    """

    def __init__(self, *, tick_interval: float = SWARM_TICK_SECONDS):
        self.tick_interval = tick_interval
        self.members: Dict[str, SwarmAgent] = {}
        self._tasks: List[asyncio.Task] = []

    def add(self, agent_id: str, agent: Agent) -> SwarmAgent:
        if agent_id in self.members:
            raise ValueError(f"Swarm agent already exists: {agent_id}")
        member = SwarmAgent(agent_id, agent, tick_interval=self.tick_interval)
        self.members[agent_id] = member
        return member

    def connect_all(self) -> None:
        for a in self.members.values():
            for b in self.members.values():
                a.connect(b)

    async def start(self) -> None:
        self._tasks = [
            asyncio.create_task(m.run(), name=f"swarm-{m.agent_id}") for m in self.members.values()
        ]

    async def send(self, agent_id: str, msg: SwarmMessage) -> None:
        await self.members[agent_id].inbox.put(msg)

    async def shutdown(self) -> None:
        for m in self.members.values():
            m.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks)
        self._tasks = []
