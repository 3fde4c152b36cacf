"""Legal template catalog and jurisdiction guidance."""
from typing import Dict, List, Optional

JURISDICTIONS = {
    'US': 'United States',
    'EU': 'European Union',
    'UK': 'United Kingdom',
    'Asia': 'Asia',
    'Other': 'Other',
}

TEMPLATES: Dict[str, List[Dict[str, str]]] = {
    'US': [
        {'id': 'US_RE_STD_1', 'name': 'US Real Estate Standard'},
        {'id': 'US_INV_STD_1', 'name': 'US Invoice Standard'},
        {'id': 'US_EQP_STD_1', 'name': 'US Equipment Standard'},
    ],
    'EU': [
        {'id': 'EU_MiCA_STD_1', 'name': 'EU MiCA Compliant'},
        {'id': 'EU_RE_STD_1', 'name': 'EU Real Estate Standard'},
    ],
    'UK': [
        {'id': 'UK_FCA_STD_1', 'name': 'UK FCA Compliant'},
    ],
    'Asia': [
        {'id': 'ASIA_SG_STD_1', 'name': 'Singapore MAS Standard'},
        {'id': 'ASIA_HK_STD_1', 'name': 'Hong Kong SFC Standard'},
    ],
}

# offered in every jurisdiction
CUSTOM_TEMPLATE = {'id': 'CUSTOM', 'name': 'Custom Template'}

GUIDANCE = {
    'US': "Assets tokenized under US jurisdiction must comply with SEC regulations, "
          "potentially including Regulation D or Regulation S exemptions.",
    'EU': "EU-based assets must comply with MiCA (Markets in Crypto-Assets) regulation "
          "and relevant member state laws.",
    'UK': "UK assets must comply with FCA (Financial Conduct Authority) regulations "
          "governing tokenized assets.",
    'Asia': "Regulations vary by country in Asia, with Singapore, Hong Kong, and Japan "
            "having more established frameworks.",
}
DEFAULT_GUIDANCE = "Please ensure compliance with your local regulatory requirements for tokenized assets."


def templates_for(jurisdiction: Optional[str]) -> List[Dict[str, str]]:
    """Templates offered for a jurisdiction, the custom template last."""
    return [dict(t) for t in TEMPLATES.get(jurisdiction or '', [])] + [dict(CUSTOM_TEMPLATE)]


def template_catalog() -> Dict[str, List[Dict[str, str]]]:
    """Every jurisdiction with its templates."""
    return {code: templates_for(code) for code in JURISDICTIONS}


def guidance_for(jurisdiction: Optional[str]) -> str:
    return GUIDANCE.get(jurisdiction or '', DEFAULT_GUIDANCE)


def estimated_readiness(kyc_required: bool, template_used: Optional[str]) -> int:
    """Display-only readiness estimate shown before deployment."""
    return 90 if kyc_required and template_used else 50
