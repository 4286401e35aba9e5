"""GitHub signal producer based on repository search activity."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import httpx

from .models import DataPoint, Signal
from .utils import as_float, log_step, parse_iso_datetime

GITHUB_LABEL = "GitHub"
SEARCH_PAGE_SIZE = 15

TOPIC_KEYWORDS: dict[str, list[str]] = {
    "AI Agents": ["agent", "ai", "llm", "gpt", "claude", "autonomous"],
    "DePIN": ["depin", "iot", "sensor", "physical", "infrastructure"],
    "DeFi": ["defi", "swap", "amm", "lending", "yield", "vault"],
    "NFT": ["nft", "compressed", "bubblegum", "metaplex"],
    "Token Extensions": ["token-2022", "token-extensions", "spl-token"],
    "Gaming": ["game", "gaming", "play-to-earn", "metaverse"],
    "Payments": ["payment", "pay", "checkout", "commerce"],
    "Security": ["security", "audit", "vulnerability", "scanner"],
    "Tooling": ["sdk", "cli", "tool", "framework", "library"],
}


class GitHubSource:
    """Search recent ecosystem repositories and group them by topic."""

    def __init__(
        self,
        api_url: str,
        queries: list[str],
        query_limit: int = 3,
        query_delay_seconds: float = 0.5,
        timeout: float = 15.0,
        user_agent: str = "narrative-scout",
        token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.queries = queries
        self.query_limit = query_limit
        self.query_delay_seconds = query_delay_seconds
        self.timeout = timeout
        self.user_agent = user_agent
        self.token = token
        self.transport = transport

    async def collect(self) -> list[Signal]:
        repos = await self._fetch_repositories()
        return build_github_signals(repos, now=datetime.now(timezone.utc))

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.user_agent,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _fetch_repositories(self) -> list[dict]:
        """Run the first queries one after another to stay within rate limits."""

        results: list[dict] = []
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._headers(),
            transport=self.transport,
        ) as client:
            for query in self.queries[: self.query_limit]:
                results.extend(await self._search(client, query))
                if self.query_delay_seconds > 0:
                    await asyncio.sleep(self.query_delay_seconds)

        return deduplicate_repositories(results)

    async def _search(self, client: httpx.AsyncClient, query: str) -> list[dict]:
        try:
            response = await client.get(
                f"{self.api_url}/search/repositories",
                params={"q": query, "sort": "updated", "order": "desc", "per_page": SEARCH_PAGE_SIZE},
            )
            if response.status_code != 200:
                log_step(f"GitHub search returned {response.status_code} for {query!r}")
                return []
            return list(response.json().get("items") or [])
        except Exception as exc:
            log_step(f"GitHub search failed for {query!r}: {exc}")
            return []


def deduplicate_repositories(repos: list[dict]) -> list[dict]:
    seen: set[str] = set()
    unique: list[dict] = []
    for repo in repos:
        name = repo.get("full_name", "")
        if name in seen:
            continue
        seen.add(name)
        unique.append(repo)
    return unique


def group_by_topic(repos: list[dict]) -> dict[str, list[dict]]:
    """Assign each repository to every topic whose keywords it mentions."""

    groups: dict[str, list[dict]] = {}
    for repo in repos:
        repo_text = " ".join(
            [
                repo.get("full_name") or "",
                repo.get("description") or "",
                " ".join(repo.get("topics") or []),
            ]
        ).lower()
        for topic, keywords in TOPIC_KEYWORDS.items():
            if any(keyword in repo_text for keyword in keywords):
                groups.setdefault(topic, []).append(repo)
    return groups


def build_github_signals(repos: list[dict], now: datetime) -> list[Signal]:
    if not repos:
        return []

    signals: list[Signal] = []
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    for topic, topic_repos in group_by_topic(repos).items():
        if len(topic_repos) < 2:
            continue

        total_stars = int(sum(as_float(repo.get("stargazers_count")) for repo in topic_repos))
        recent = [repo for repo in topic_repos if _is_after(repo.get("updated_at"), week_ago)]
        activity = "strong" if len(recent) > len(topic_repos) / 2 else "moderate"
        signals.append(
            Signal(
                source="github",
                category=topic,
                title=f"{topic}: {len(topic_repos)} active repositories on Solana",
                description=(
                    f"Developer activity in {topic} is {activity} with {len(topic_repos)} repos "
                    f"({total_stars} total stars). {len(recent)} updated in the last 7 days."
                ),
                data_points=tuple(
                    DataPoint(
                        metric=repo.get("full_name", ""),
                        value=f"{int(as_float(repo.get('stargazers_count')))} stars",
                        change=(repo.get("description") or "")[:80],
                        source=GITHUB_LABEL,
                        url=repo.get("html_url"),
                    )
                    for repo in topic_repos[:3]
                ),
                strength=min(100, len(topic_repos) * 15 + min(total_stars, 50)),
                timestamp=now,
            )
        )

    created = [repo for repo in repos if _is_after(repo.get("created_at"), month_ago)]
    if created:
        languages: list[str] = []
        for repo in created:
            language = repo.get("language")
            if language and language not in languages:
                languages.append(language)

        signals.append(
            Signal(
                source="github",
                category="Ecosystem",
                title=f"{len(created)} new Solana projects in the last 30 days",
                description=(
                    f"Developer ecosystem showing {'high' if len(created) >= 10 else 'moderate'} "
                    f"velocity with {len(created)} new repositories created. "
                    f"Top languages: {', '.join(languages[:3])}."
                ),
                data_points=tuple(
                    DataPoint(
                        metric=repo.get("full_name", ""),
                        value=f"{int(as_float(repo.get('stargazers_count')))} stars",
                        change=f"Created {_created_date(repo)}",
                        source=GITHUB_LABEL,
                        url=repo.get("html_url"),
                    )
                    for repo in created[:4]
                ),
                strength=min(100, len(created) * 8),
                timestamp=now,
            )
        )

    return signals


def _is_after(text: str | None, threshold: datetime) -> bool:
    moment = parse_iso_datetime(text)
    if moment is None:
        return False
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment > threshold


def _created_date(repo: dict) -> str:
    moment = parse_iso_datetime(repo.get("created_at"))
    return moment.date().isoformat() if moment else "unknown"
