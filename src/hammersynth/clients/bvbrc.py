"""
BV-BRC (formerly PATRIC) API client for downloading genomes.

Provides access to the BV-BRC data API for retrieving genome records,
contig sequences and protein annotations by genome ID, assembled into
the same :class:`~hammersynth.models.genome.Genome` model used for GTO files.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Self

import httpx

from hammersynth.core.exceptions import RepositoryError
from hammersynth.models.genome import Contig, Feature, Genome

logger = logging.getLogger(__name__)

BVBRC_API_BASE = "https://www.bv-brc.org/api"

# Maximum rows returned by one data API query
ROW_LIMIT = 25000
# MD5 keys per protein-sequence query
MD5_BATCH_SIZE = 200

# BV-BRC genome fields copied into the quality bag
_QUALITY_FIELDS = {
    "completeness": "completeness",
    "contamination": "contamination",
    "fine_consistency": "fine_consistency",
    "coarse_consistency": "coarse_consistency",
}


class GenomeDetail(str, Enum):
    """How much of a genome to download."""

    CONTIGS = "contigs"
    FULL = "full"


class BVBRCClient:
    """Client for BV-BRC data API requests.

    Requests are not retried: a failed request raises
    :class:`RepositoryError` and the caller decides whether that is fatal.

    Attributes:
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        timeout: float = 60.0,
        base_url: str = BVBRC_API_BASE,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize BV-BRC client.

        Args:
            timeout: Request timeout in seconds.
            base_url: Data API root URL.
            transport: Optional httpx transport (used to mock the API in tests).
        """
        self.timeout = timeout
        self.base_url = base_url
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def fetch(self, genome_id: str, detail: GenomeDetail = GenomeDetail.FULL) -> Genome | None:
        """Download a genome.

        Args:
            genome_id: BV-BRC genome ID (e.g. 83333.1).
            detail: CONTIGS for identity and DNA only, FULL to add the
                protein-coding features and their translations.

        Returns:
            The genome, or None if BV-BRC has no genome with this ID.

        Raises:
            RepositoryError: If any API request fails.
        """
        rows = self._query(
            f"/genome/?eq(genome_id,{genome_id})"
            "&select(genome_id,genome_name,genome_quality,"
            + ",".join(_QUALITY_FIELDS)
            + ")"
        )
        if not rows:
            logger.warning("Genome %s not found in BV-BRC", genome_id)
            return None
        record = rows[0]

        contigs = [
            Contig(id=row["accession"], dna=row.get("sequence", ""))
            for row in self._query(
                f"/genome_sequence/?eq(genome_id,{genome_id})"
                f"&select(accession,sequence)&limit({ROW_LIMIT})"
            )
            if row.get("accession")
        ]

        features: list[Feature] = []
        if detail is GenomeDetail.FULL:
            features = self._fetch_features(genome_id)

        quality: dict[str, Any] = {
            key: record[field] for field, key in _QUALITY_FIELDS.items() if field in record
        }
        quality["good"] = str(record.get("genome_quality", "")).lower() == "good"

        logger.debug(
            "Downloaded %s: %d contigs, %d features", genome_id, len(contigs), len(features)
        )
        return Genome(
            id=record.get("genome_id", genome_id),
            scientific_name=record.get("genome_name", ""),
            contigs=contigs,
            features=features,
            quality=quality,
        )

    def _fetch_features(self, genome_id: str) -> list[Feature]:
        """Download the protein-coding features of a genome with translations."""
        rows = self._query(
            f"/genome_feature/?and(eq(genome_id,{genome_id}),eq(annotation,PATRIC),"
            "eq(feature_type,CDS))"
            f"&select(patric_id,product,aa_sequence_md5)&limit({ROW_LIMIT})"
        )
        md5s = sorted({row["aa_sequence_md5"] for row in rows if row.get("aa_sequence_md5")})
        proteins: dict[str, str] = {}
        for start in range(0, len(md5s), MD5_BATCH_SIZE):
            batch = md5s[start : start + MD5_BATCH_SIZE]
            for row in self._query(
                f"/feature_sequence/?in(md5,({','.join(batch)}))"
                f"&select(md5,sequence)&limit({MD5_BATCH_SIZE})"
            ):
                proteins[row["md5"]] = row.get("sequence", "")

        return [
            Feature(
                id=row.get("patric_id", ""),
                type="CDS",
                function=row.get("product", ""),
                protein_translation=proteins.get(row.get("aa_sequence_md5", "")),
            )
            for row in rows
        ]

    def _query(self, endpoint: str) -> list[dict[str, Any]]:
        """Make a GET request to the data API and return its rows.

        Raises:
            RepositoryError: If the request fails or the response is not a
                JSON list.
        """
        client = self._get_client()
        try:
            response = client.get(endpoint)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RepositoryError(
                f"BV-BRC API request failed: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise RepositoryError(f"BV-BRC API connection error: {e}") from e
        except ValueError as e:
            raise RepositoryError(f"BV-BRC API returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise RepositoryError("BV-BRC API returned an unexpected response shape")
        return [row for row in data if isinstance(row, dict)]
