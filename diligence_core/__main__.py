"""Entry point for batch imports and risk scoring"""
import json
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from diligence_core.config import settings
from diligence_core.db import db
from diligence_core.importer import parse_file, preview_transactions
from diligence_core.models.risk import FindingInput
from diligence_core.scoring import calculate_risk_breakdown
from diligence_core.services.storage import StorageService
from diligence_core.utils.json_encoder import DateTimeEncoder

FINDINGS_FILE = 'findings.json'

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)


def load_findings(path: Path) -> List[FindingInput]:
    """Read findings as a JSON list of {category, severity, is_resolved} objects"""
    with open(path, 'r') as f:
        raw = json.load(f)
    return [
        FindingInput(
            category=item['category'],
            severity=item['severity'],
            is_resolved=bool(item.get('is_resolved', item.get('isResolved', False)))
        )
        for item in raw
    ]


def import_files(input_dir: Path, storage: Optional[StorageService] = None) -> List[Dict[str, Any]]:
    """Parse every CSV export in the input directory, persisting through ``storage`` when given"""
    summaries = []

    for path in sorted(input_dir.glob('*.csv')):
        result = parse_file(str(path))
        logger.info(f"{path.name}: {result.exchange or 'unknown'} - {len(result.transactions)} transactions")

        stored = 0
        if storage and result.success and result.transactions:
            stored = storage.store_transactions(
                settings.CLIENT_ID,
                settings.ORGANIZATION_ID,
                result.transactions,
                result.exchange
            )

        summaries.append({
            'file': path.name,
            'success': result.success,
            'exchange': result.exchange,
            'transaction_count': len(result.transactions),
            'stored': stored,
            'preview': [tx.to_dict() for tx in preview_transactions(result)],
            'errors': result.errors,
            'warnings': result.warnings,
        })

    return summaries


def run() -> None:
    """Import all CSV exports and score findings found in the input directory."""
    try:
        input_dir = Path(settings.INPUT_DIR)
        if not input_dir.is_dir() or not any(input_dir.iterdir()):
            raise FileNotFoundError(f"No input files found in {settings.INPUT_DIR}")

        if settings.CLIENT_ID or settings.CASE_ID:
            db.init()

        if settings.CLIENT_ID:
            with db.session() as session:
                imports = import_files(input_dir, StorageService(session))
        else:
            imports = import_files(input_dir)
        output: Dict[str, Any] = {'imports': imports}

        findings_path = input_dir / FINDINGS_FILE
        if findings_path.exists():
            breakdown = calculate_risk_breakdown(load_findings(findings_path))
            output['risk'] = breakdown.model_dump()
            logger.info(f"Risk score: {breakdown.overall_score} ({breakdown.risk_level.value})")

        if settings.CASE_ID:
            with db.session() as session:
                breakdown = StorageService(session).refresh_case_risk(settings.CASE_ID)
            output['case_risk'] = breakdown.model_dump()

        output_path = os.path.join(settings.OUTPUT_DIR, "results.json")
        with open(output_path, 'w') as f:
            json.dump(output, f, indent=2, cls=DateTimeEncoder)

        logger.info(f"Results written to {output_path}")

    except Exception as e:
        logger.error(f"Error during import: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.dispose()


if __name__ == "__main__":
    run()
