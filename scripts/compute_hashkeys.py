#!/usr/bin/env python
"""
Batch spectral hash key computation.

Reads InChI identifiers (one per line, first whitespace-separated token,
or a column of a CSV file) and writes ``hashkey<TAB>identifier`` lines,
or a CSV with key segments and errors.
"""

import argparse
import json
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from tqdm import tqdm

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from spectral_hk.spectral.digest import SpectralHasher
from spectral_hk.utils.config_utils import ConfigLoader, HashKeyConfigValidator
from spectral_hk.utils.logging_utils import ProgressLogger, setup_logger
from spectral_hk.utils.memory_utils import log_memory_usage

# Child of the "spectral_hk" logger configured in main()
logger = logging.getLogger("spectral_hk.batch")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Compute spectral hash keys for InChI identifiers")

    # Input/output arguments
    parser.add_argument("input_file", type=str, nargs="?", default=None,
                        help="Input file (default: stdin)")
    parser.add_argument("output_file", type=str, nargs="?", default=None,
                        help="Output file (default: stdout)")
    parser.add_argument("--csv", action="store_true",
                        help="Read the input as CSV and write CSV output")
    parser.add_argument("--inchi_column", type=str, default="inchi",
                        help="Name of InChI column in CSV input")
    parser.add_argument("--id_column", type=str, default=None,
                        help="Optional ID column carried into CSV output")

    # Processing arguments
    parser.add_argument("--config", type=str, default=None,
                        help="Configuration file (YAML or JSON)")
    parser.add_argument("--eigensolver", type=str, default=None, choices=["jacobi", "scipy"],
                        help="Override the configured eigensolver")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of worker threads, each with its own hasher")
    parser.add_argument("--max_molecules", type=int, default=None,
                        help="Maximum number of identifiers to process")

    # Diagnostics
    parser.add_argument("--log_level", type=str, default=None,
                        help="Logging level (overrides configuration)")
    parser.add_argument("--log_dir", type=str, default=None,
                        help="Directory for log files")
    parser.add_argument("--details", type=str, default=None,
                        help="Write per-molecule graph, bond and ring details to this JSON file")
    parser.add_argument("--no_progress", action="store_true",
                        help="Disable the progress bar")

    return parser.parse_args(argv)


def read_text_identifiers(lines: Iterable[str]) -> List[str]:
    """First whitespace-separated token of every non-blank line."""
    identifiers = []
    for line in lines:
        tokens = line.split()
        if tokens:
            identifiers.append(tokens[0])
    return identifiers


def load_identifiers(input_file: Optional[str], csv: bool, inchi_column: str,
                     id_column: Optional[str] = None,
                     max_molecules: Optional[int] = None) -> pd.DataFrame:
    """Load identifiers into a frame with 'inchi' and 'id' columns."""
    source = input_file if input_file is not None else sys.stdin

    if csv:
        df = pd.read_csv(source)
        if inchi_column not in df.columns:
            raise ValueError(f"Column '{inchi_column}' not found; available: {list(df.columns)}")
        ids = df[id_column] if id_column else pd.Series(range(len(df)))
        df = pd.DataFrame({'id': ids.values, 'inchi': df[inchi_column].astype(str).str.strip()})
    else:
        if input_file is not None:
            with open(input_file, 'r') as f:
                identifiers = read_text_identifiers(f)
        else:
            identifiers = read_text_identifiers(sys.stdin)
        df = pd.DataFrame({'id': range(len(identifiers)), 'inchi': identifiers})

    logger.info(f"Loaded {len(df)} identifiers")
    if max_molecules is not None and len(df) > max_molecules:
        df = df.head(max_molecules)
        logger.info(f"Limited to {max_molecules} identifiers")
    return df


def process_identifier(hasher: SpectralHasher, identifier: str, mol_id=None,
                       details: bool = False) -> Dict:
    """Digest one identifier into an output record."""
    result = hasher.digest(identifier)
    record = result.to_dict(details=details)
    record['id'] = mol_id
    if result.ok and not result.empty:
        record['topology'], record['connection'], record['full'] = result.segments
    return record


def process_parallel(df: pd.DataFrame, config: Dict, workers: int,
                     progress: Optional[tqdm] = None, details: bool = False) -> List[Dict]:
    """Digest identifiers on a thread pool; every thread owns one hasher."""
    local = threading.local()

    def work(row):
        hasher = getattr(local, 'hasher', None)
        if hasher is None:
            hasher = local.hasher = SpectralHasher(config)
        return process_identifier(hasher, row.inchi, row.id, details)

    results = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for record in executor.map(work, df.itertuples(index=False)):
            results.append(record)
            if progress is not None:
                progress.update(1)
    return results


def status_of(record: Dict) -> str:
    if record['error'] is not None:
        return 'failed'
    return 'empty' if not record['hashkey'] else 'ok'


def write_results(results: List[Dict], output_file: Optional[str], csv: bool):
    """Write records as TSV lines or CSV; failures go to the log, not the output."""

    if csv:
        columns = ['id', 'inchi', 'hashkey', 'topology', 'connection', 'full', 'error', 'error_kind']
        frame = pd.DataFrame([{**record, 'inchi': record['identifier']} for record in results])
        frame = frame.reindex(columns=columns)
        frame.to_csv(output_file if output_file is not None else sys.stdout, index=False)
        return

    out = open(output_file, 'w') if output_file is not None else sys.stdout
    try:
        for record in results:
            if record['error'] is not None:
                logger.error(f"failed to process {record['identifier']} ({record['error']})")
            else:
                out.write(f"{record['hashkey']}\t{record['identifier']}\n")
    finally:
        if out is not sys.stdout:
            out.close()


def write_details(results: List[Dict], details_file: str):
    """Save detailed records (graph summary, bonds, bond-order report) as JSON."""
    path = Path(details_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    keys = ['id', 'identifier', 'hashkey', 'error', 'messages', 'graph', 'bonds', 'bond_orders']
    with open(path, 'w') as f:
        json.dump([{key: record.get(key) for key in keys} for record in results], f,
                  indent=2, default=str)
    logger.info(f"Saved details for {len(results)} identifiers to {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main batch function."""
    args = parse_args(argv)

    config = ConfigLoader.load_config(args.config) if args.config else HashKeyConfigValidator.validate({})
    if args.eigensolver:
        config['spectral']['eigensolver'] = args.eigensolver
    level = args.log_level or config['logging']['level']
    log_dir = args.log_dir or config['logging']['log_dir']

    setup_logger("spectral_hk", log_dir=log_dir, level=level)

    df = load_identifiers(args.input_file, args.csv, args.inchi_column,
                          args.id_column, args.max_molecules)
    logger.info(f"Hashing {len(df)} identifiers with {args.workers} worker(s), "
                f"eigensolver={config['spectral']['eigensolver']}")

    progress_log = ProgressLogger(len(df), logger=logger)
    with tqdm(total=len(df), desc="Hashing", unit="molecules", disable=args.no_progress,
              file=sys.stderr) as pbar:
        details = args.details is not None
        if args.workers > 1:
            results = process_parallel(df, config, args.workers, pbar, details)
        else:
            hasher = SpectralHasher(config)
            results = []
            for row in df.itertuples(index=False):
                results.append(process_identifier(hasher, row.inchi, row.id, details))
                pbar.update(1)

    for record in results:
        progress_log.update(status_of(record))
    progress_log.finish()

    write_results(results, args.output_file, args.csv)
    if args.details:
        write_details(results, args.details)
    log_memory_usage("Final ")
    return 0


if __name__ == "__main__":
    sys.exit(main())
