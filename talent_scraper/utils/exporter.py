"""
Export scraped profiles and search summaries to JSON and CSV
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    'identity_id',
    'full_name',
    'headline',
    'location',
    'profile_url',
    'current_title',
    'current_company',
    'skills',
    'languages',
    'education',
    'certifications',
    'completeness',
    'scraped_at',
]


def _as_dict(item: Any) -> Dict[str, Any]:
    return item.to_dict() if hasattr(item, 'to_dict') else dict(item)


def flatten_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    """One CSV row per profile; list sections collapsed into short strings"""
    experience = profile.get('experience') or []
    current = next((e for e in experience if e.get('is_current')), experience[0] if experience else {})
    row = {
        'identity_id': profile.get('identity_id', ''),
        'full_name': profile.get('full_name') or profile.get('display_name', ''),
        'headline': profile.get('headline', ''),
        'location': profile.get('location') or '',
        'profile_url': profile.get('profile_url', ''),
        'current_title': current.get('title', ''),
        'current_company': current.get('company', ''),
        'skills': '; '.join(profile.get('skills') or []),
        'languages': '; '.join(profile.get('languages') or []),
        'education': '; '.join(e.get('school', '') for e in profile.get('education') or []),
        'certifications': '; '.join(c.get('name', '') for c in profile.get('certifications') or []),
        'completeness': profile.get('completeness', ''),
        'scraped_at': profile.get('scraped_at', ''),
    }
    return row


class DataExporter:
    """Writes timestamped export files under one directory"""

    def __init__(self, export_path: Union[str, Path] = 'data/exports'):
        self.export_path = Path(export_path)

    def get_export_path(self) -> Path:
        return self.export_path

    def _target(self, prefix: str, extension: str) -> Path:
        self.export_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return self.export_path / f'{prefix}_{timestamp}.{extension}'

    def export_json(self, items: Sequence[Any], prefix: str = 'profiles') -> Path:
        path = self._target(prefix, 'json')
        data = [_as_dict(item) for item in items]
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info(f"[OK] Exported {len(data)} records to {path}")
        return path

    def export_csv(self, items: Sequence[Any], prefix: str = 'profiles') -> Path:
        path = self._target(prefix, 'csv')
        rows = [flatten_profile(_as_dict(item)) for item in items]
        with open(path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            writer.writerows(rows)
        logger.info(f"[OK] Exported {len(rows)} records to {path}")
        return path

    def export_all_formats(self, items: List[Any], prefix: str = 'profiles') -> Dict[str, bool]:
        """Try every format; a failure in one does not stop the others"""
        results = {}
        for name, exporter in (('json', self.export_json), ('csv', self.export_csv)):
            try:
                exporter(items, prefix)
                results[name] = True
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"[X] {name.upper()} export failed: {e}")
                results[name] = False
        return results
