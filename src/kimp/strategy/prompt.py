"""Prompt template rendering for strategy generation."""

import json
from collections.abc import Mapping
from typing import Any

DEFAULT_PROMPT_TEMPLATE = """\
You are given daily market data, most recent date first.

Domestic price history (local currency):
{{domesticHistory}}

International price history (foreign currency):
{{internationalHistory}}

Conversion rate history:
{{rateHistory}}

Premium history (%):
{{kimchiPremiumHistory}}

Adaptive premium thresholds (buyThreshold/sellThreshold in %):
{{thresholdHistory}}

Recommend a buy price and a sell price for the domestic market for today.
Answer with a single JSON object and nothing else, using exactly these keys:
{"analysis_date": "YYYY-MM-DD", "buy_price": number, "sell_price": number,
 "expected_return": number, "summary": "short rationale"}
"""


def render_prompt(template: str, inputs: Mapping[str, Any]) -> str:
    """Replace every ``{{name}}`` placeholder with ``inputs[name]`` as JSON.

    Placeholders without a matching input are left untouched.
    """
    prompt = template
    for name, value in inputs.items():
        prompt = prompt.replace("{{" + name + "}}", json.dumps(value, ensure_ascii=False))
    return prompt
