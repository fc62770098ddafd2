"""
Configuration loader for the UK Legislation MCP Server

Reads document-type mappings and cache settings from config/legislation.yaml,
falling back to built-in values when the file is missing or unreadable.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Configuration loader for legislation type mappings.

    Loads the long-to-short document type map, type descriptions and
    cache settings from a YAML file. Falls back to hardcoded values.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize ConfigLoader with optional custom config path.

        Args:
            config_path: Path to YAML config file. If None, uses environment variable
                        LEGISLATION_CONFIG_PATH or defaults to config/legislation.yaml
        """
        default_config = Path(__file__).parent.parent / "config" / "legislation.yaml"
        config_env = os.environ.get("LEGISLATION_CONFIG_PATH")
        if config_env:
            self.config_path = Path(config_env)
        elif config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = default_config
        self._document_types: Optional[dict[str, str]] = None
        self._type_descriptions: Optional[dict[str, str]] = None
        self._cache_settings: Optional[dict[str, dict]] = None

        # DocumentMainType values as they appear in CLML metadata and Atom feeds
        self._fallback_document_types = {
            # Primary legislation
            "UnitedKingdomPublicGeneralAct": "ukpga",
            "UnitedKingdomLocalAct": "ukla",
            "UnitedKingdomPrivateOrPersonalAct": "ukppa",
            "ScottishAct": "asp",
            "WelshNationalAssemblyAct": "anaw",
            "WelshParliamentAct": "asc",
            "WelshAssemblyMeasure": "mwa",
            "NorthernIrelandAct": "nia",
            "NorthernIrelandAssemblyMeasure": "mnia",
            "NorthernIrelandParliamentAct": "apni",
            "ScottishOldAct": "aosp",
            "EnglandAct": "aep",
            "GreatBritainAct": "apgb",
            "IrelandAct": "aip",
            "UnitedKingdomChurchMeasure": "ukcm",

            # Secondary legislation
            "UnitedKingdomStatutoryInstrument": "uksi",
            "UnitedKingdomMinisterialDirection": "ukmd",
            "UnitedKingdomMinisterialOrder": "ukmo",
            "UnitedKingdomStatutoryRuleOrOrder": "uksro",
            "UnitedKingdomChurchInstrument": "ukci",
            "ScottishStatutoryInstrument": "ssi",
            "WelshStatutoryInstrument": "wsi",
            "NorthernIrelandStatutoryRule": "nisr",
            "NorthernIrelandOrderInCouncil": "nisi",
            "NorthernIrelandStatutoryRuleOrOrder": "nisro",

            # Drafts
            "UnitedKingdomDraftStatutoryInstrument": "ukdsi",
            "ScottishDraftStatutoryInstrument": "sdsi",
            "NorthernIrelandDraftStatutoryRule": "nidsr",
            "WelshDraftStatutoryInstrument": "wdsi",

            # EU legislation retained after exit
            "EuropeanUnionRegulation": "eur",
            "EuropeanUnionDecision": "eudn",
            "EuropeanUnionDirective": "eudr",
            "EuropeanUnionTreaty": "eut",

            "UnitedKingdomImpactAssessment": "ukia",
        }

        self._fallback_type_descriptions = {
            "ukpga": "UK Public General Acts",
            "ukla": "UK Local Acts",
            "asp": "Acts of the Scottish Parliament",
            "anaw": "Acts of the National Assembly for Wales",
            "asc": "Acts of Senedd Cymru",
            "nia": "Acts of the Northern Ireland Assembly",
            "uksi": "UK Statutory Instruments",
            "ssi": "Scottish Statutory Instruments",
            "wsi": "Wales Statutory Instruments",
            "nisr": "Northern Ireland Statutory Rules",
            "eur": "Regulations originating from the EU",
            "ukia": "UK Impact Assessments",
        }

        self._fallback_cache_settings = {
            "document_cache": {"max_size": 100, "ttl": 3600},
            "search_cache": {"max_size": 200, "ttl": 900},
            "memory_limit_mb": 512,
        }

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            if self.config_path.exists():
                with open(self.config_path, encoding='utf-8') as f:
                    config = yaml.safe_load(f)
                    logger.info(f"Loaded configuration from {self.config_path}")
                    return config or {}
            else:
                logger.warning(f"Config file not found at {self.config_path}, using fallback values")
                return {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            logger.info("Using fallback values")
            return {}

    @property
    def document_types(self) -> dict[str, str]:
        """Get DocumentMainType -> short type code mapping."""
        if self._document_types is None:
            config = self._load_config()
            self._document_types = config.get('document_types', self._fallback_document_types)
        return self._document_types

    @property
    def type_descriptions(self) -> dict[str, str]:
        """Get short type code -> human readable description."""
        if self._type_descriptions is None:
            config = self._load_config()
            self._type_descriptions = config.get('type_descriptions', self._fallback_type_descriptions)
        return self._type_descriptions

    @property
    def cache_settings(self) -> dict[str, Any]:
        if self._cache_settings is None:
            config = self._load_config()
            self._cache_settings = config.get('cache', self._fallback_cache_settings)
        return self._cache_settings

    def short_type(self, long_type: str) -> str:
        """Map a DocumentMainType value to its short code, or '' if unknown."""
        return self.document_types.get(long_type, "")

    def reload_config(self) -> None:
        """Reload configuration from file."""
        self._document_types = None
        self._type_descriptions = None
        self._cache_settings = None
        logger.info("Configuration reloaded")


config_loader = ConfigLoader()
