"""
Result Matrix Renderer.

Folds the flat probe result set into a ResultMatrix and renders it as a
fixed-width text table (rows = origin domains sorted lexicographically,
columns = endpoints in directory order, labelled by location code) or as
JSON.

A pair missing from the result set is rendered as FAILURE.
"""

import json
from typing import Optional

from .enums import ProbeStatus
from .models import Endpoint, OriginTarget, ProbeResult, ResultMatrix


DOMAIN_HEADER = "DOMAIN"
MIN_DOMAIN_WIDTH = 30
MIN_COLUMN_WIDTH = 12


def build_matrix(
    results: list[ProbeResult],
    targets: list[OriginTarget],
    endpoints: list[Endpoint],
) -> ResultMatrix:
    """
    Aggregate probe results into a matrix.

    Args:
        results: One result per (target, endpoint) pair
        targets: Origin targets (define the rows)
        endpoints: Endpoints in directory order (define the columns)

    Returns:
        ResultMatrix with sorted rows and directory-ordered columns
    """
    domains = sorted({target.domain for target in targets})
    cells: dict[str, dict[str, ProbeStatus]] = {domain: {} for domain in domains}
    for result in results:
        row = cells.get(result.domain)
        if row is None:
            continue
        row[result.hostname] = result.status

    return ResultMatrix(domains=domains, endpoints=list(endpoints), cells=cells)


def render_table(matrix: ResultMatrix) -> str:
    """
    Render the matrix as a left-justified fixed-width table.

    Returns:
        Header row, separator row and one row per domain, newline-terminated
    """
    labels = matrix.column_labels
    domain_width = max(
        [MIN_DOMAIN_WIDTH] + [len(domain) + 2 for domain in matrix.domains]
    )
    column_widths = [max(MIN_COLUMN_WIDTH, len(label) + 2) for label in labels]

    lines = []

    header = DOMAIN_HEADER.ljust(domain_width) + "".join(
        label.ljust(width) for label, width in zip(labels, column_widths)
    )
    lines.append(header.rstrip())

    separator = ("-" * (domain_width - 2)).ljust(domain_width) + "".join(
        ("-" * (width - 2)).ljust(width) for width in column_widths
    )
    lines.append(separator.rstrip())

    for domain in matrix.domains:
        row = domain.ljust(domain_width) + "".join(
            matrix.status(domain, endpoint.hostname).value.ljust(width)
            for endpoint, width in zip(matrix.endpoints, column_widths)
        )
        lines.append(row.rstrip())

    return "\n".join(lines) + "\n"


def render_json(
    matrix: ResultMatrix,
    results: Optional[list[ProbeResult]] = None,
) -> str:
    """
    Render the matrix (and optionally per-probe diagnostics) as JSON.

    Returns:
        Pretty-printed JSON document
    """
    data: dict = {
        "columns": [
            {
                "location_code": endpoint.location_code,
                "hostname": endpoint.hostname,
                "ip": endpoint.ip,
            }
            for endpoint in matrix.endpoints
        ],
        "rows": [
            {
                "domain": domain,
                "cells": [
                    matrix.status(domain, endpoint.hostname).value
                    for endpoint in matrix.endpoints
                ],
            }
            for domain in matrix.domains
        ],
    }

    if results is not None:
        data["probes"] = [
            {
                "domain": result.domain,
                "hostname": result.hostname,
                "status": result.status.value,
                "error": result.error,
                "http_status_code": result.http_status_code,
                "response_time_ms": round(result.response_time_ms, 1),
            }
            for result in sorted(results, key=lambda r: r.key)
        ]

    return json.dumps(data, indent=2, ensure_ascii=False)
