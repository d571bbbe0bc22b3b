"""
nokrfp/core/branding.py — Brand, Color, and Copy Configuration

Every label, color, and paragraph of fixed copy that the wizard page or the
RFP PDF shows lives here, so a rebrand is a config change and not a code
change. An optional JSON file (NOKRFP_CONFIG, else nokrfp_config.json at the
project root) is deep-merged over the defaults at load time.

Usage:
    from nokrfp.core.branding import load_branding
    brand = load_branding()
    brand["name"]              # "Nok Recommerce"
    brand["colors"]["primary"] # "#0A0E27"
"""

import copy
import json
import logging
import os

log = logging.getLogger("nokrfp.branding")

# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULTS
# ═══════════════════════════════════════════════════════════════════════════════
BRAND = {
    "name":       "Nok Recommerce",
    "tagline":    "Recommerce strategy",
    "page_title": "Build your Reverse Logistics RFP",
    "intro": (
        "Capture the operational reality of your returns, align on recommerce "
        "strategy, and translate insights into a decision-ready framework for "
        "peak season and enterprise leadership."
    ),
    "badge":      "Peak season ready",
    "confidential": "Confidential",

    # Professional white background with black / deep navy text
    "colors": {
        "primary":  "#0A0E27",   # deep navy
        "body":     "#000000",
        "muted":    "#666666",
        "border":   "#334155",
        "accent":   "#2563EB",
    },

    "pdf": {
        "title":         "Request for Proposal",
        "subtitle":      "Comprehensive Reverse Logistics Partner",
        "cover_heading": "Reverse Logistics Strategic RFP",
        "author":        "Nok Recommerce",
    },

    "project_purpose": (
        "This document was developed to establish a structured understanding of "
        "current operations, strategic priorities, and areas of opportunity. The "
        "information captured reflects a combination of operational inputs intended "
        "to surface efficiencies and highlight potential paths for improvement. The "
        "purpose of this assessment is to enable a collaborative discussion around "
        "priorities, constraints, and success metrics to ensure recommended "
        "initiatives are practical and positioned for long-term success."
    ),

    "next_steps": (
        "A Nok expert (Maddy) will reach out shortly to facilitate a review of "
        "these findings, validate the assumptions captured here, and explore "
        "alignment with broader business objectives. This process is intended to "
        "support scalable, data-informed decisions."
    ),

    "evaluation_criteria": [
        ["Strategic Alignment", "30%"],
        ["Capability & Experience", "30%"],
        ["Technology & Innovation", "20%"],
        ["Pricing & Value", "20%"],
    ],

    "deliverables": [
        ["Operational Baseline Audit",
         "A detailed synthesis of your annual returns volume, seasonality trends, "
         "and current retail program footprint (DIF/ZVR/RTV)."],
        ["Recommerce Channel Roadmap",
         "A strategic mapping of your interest in DTC, Trade-In, and Off-Price "
         "channels against your specific brand restrictions."],
        ["Opportunity & Value Assessment",
         "A gap analysis of your current returns handling versus your stated "
         "priorities (Environmental, Financial, and Customer Loyalty)."],
        ["Decision-Ready Framework",
         "A professional assessment formatted for executive stakeholders to align "
         "on peak season strategy and recommerce maturity."],
    ],

    "program_definitions": {
        "DIF": "Destroy in Field. The retailer destroys the product on-site instead "
               "of shipping it back, usually for a financial credit.",
        "ZVR": "Zero Value Return. Items are returned to the retailer but deemed to "
               "have no recovery value; they are typically recycled or disposed of "
               "by the retailer.",
        "RTV": "Return to Vendor. Items are shipped back to the brand's facility or "
               "3PL for grading and potential recovery.",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    for key, val in override.items():
        if isinstance(val, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], val)
        else:
            base[key] = val
    return base


def load_branding(path: str = "") -> dict:
    """Return the branding table with any JSON override merged in.

    A missing override file is normal. A malformed one is logged and
    ignored so a bad deploy never takes the form down.
    """
    brand = copy.deepcopy(BRAND)
    if not path:
        from nokrfp.core.paths import CONFIG_PATH
        path = CONFIG_PATH
    if not os.path.exists(path):
        return brand
    try:
        with open(path) as f:
            override = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Branding override %s unreadable, using defaults: %s", path, e)
        return brand
    if not isinstance(override, dict):
        log.warning("Branding override %s is not an object, using defaults", path)
        return brand
    log.info("Branding override loaded from %s (%d keys)", path, len(override))
    return _deep_merge(brand, override)
