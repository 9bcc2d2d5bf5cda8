"""
Task Content Generator

Builds the action summary, step list and tools/supplies list shown for a
maintenance task from its title and description. Catalog entries ship as
titles only, so every catalog task passes through here before display.
"""

import re
from typing import Dict, List

_LEADING_ACTION = re.compile(r'^(test|inspect|check|clean|monitor|replace|service|maintain)\s+', re.IGNORECASE)
_TRAILING_FOR = re.compile(r'\s+for.*$')
_TRAILING_IF = re.compile(r'\s+if.*$')
_NUMBERED_STEP = re.compile(r'\d+\.\s+[^.]+\.')
_NUMBER_PREFIX = re.compile(r'^\d+\.\s+')
_SENTENCE_SPLIT = re.compile(r'[.!?]+')

GENERIC_STEPS = [
    'Read the task description carefully',
    'Gather necessary tools and supplies',
    'Complete the maintenance task as described',
    'Document completion and note any issues',
]

DEFAULT_TOOLS = ['Basic hand tools', 'Flashlight']


def extract_target(title: str) -> str:
    """Strip the leading verb and any "for ..."/"if ..." tail from a title."""
    cleaned = _LEADING_ACTION.sub('', title.lower())
    cleaned = _TRAILING_FOR.sub('', cleaned)
    cleaned = _TRAILING_IF.sub('', cleaned)
    return cleaned or 'system'


def generate_action_summary(title: str, description: str) -> str:
    lower_title = title.lower()
    lower_desc = description.lower()

    if ('carbon monoxide' in lower_title or 'co detector' in lower_title
            or 'smoke detector' in lower_title):
        return 'Test your safety detectors monthly to protect your family from invisible dangers.'

    if 'emergency' in lower_title or 'emergency' in lower_desc:
        return 'Complete these essential safety checks to prepare for unexpected emergencies.'

    if 'inspect' in lower_title or 'check for' in lower_title:
        return f"Perform a thorough inspection of your {extract_target(title)} to catch problems early."

    if 'test ' in lower_title:
        return f"Run these quick tests to ensure your {extract_target(title)} works when you need it."

    if 'clean ' in lower_title:
        return f"Clean your {extract_target(title)} to maintain performance and prevent buildup."

    if 'monitor' in lower_title or 'check ' in lower_title:
        return f"Check your {extract_target(title)} with these quick steps to ensure everything runs smoothly."

    if 'winterize' in lower_title or 'prepare for winter' in lower_title:
        return 'Complete these essential steps to protect your home from winter damage.'

    return f"Follow these steps to {lower_title}."


def generate_steps(title: str, description: str) -> List[str]:
    numbered = _NUMBERED_STEP.findall(description)
    if numbered:
        return [_NUMBER_PREFIX.sub('', m).strip() for m in numbered]

    lower_title = title.lower()

    if 'test' in lower_title and 'detector' in lower_title:
        return [
            'Press the test button on the detector until it beeps',
            'Verify the alarm sound is loud and clear',
            'Replace batteries if the low-battery chirp sounds',
        ]
    if 'inspect' in lower_title and 'roof' in lower_title:
        return [
            'Use binoculars to inspect roof from the ground',
            'Look for missing, cracked, or curled shingles',
            'Check flashing around chimneys and vents',
            'Schedule professional inspection if damage is found',
        ]
    if 'clean' in lower_title and 'gutter' in lower_title:
        return [
            'Set up stable ladder on level ground',
            'Remove debris by hand or with scoop',
            'Flush gutters with garden hose',
            'Ensure downspouts drain away from foundation',
        ]
    if 'filter' in lower_title:
        return [
            'Locate the filter access panel',
            'Remove the old filter and note its size',
            'Insert new filter with airflow arrow pointing toward unit',
            'Mark calendar to check again in 30-90 days',
        ]

    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(description) if len(s.strip()) > 20]
    if len(sentences) >= 2:
        return sentences[:4]

    return list(GENERIC_STEPS)


def generate_tools_and_supplies(title: str, description: str) -> List[str]:
    tools: List[str] = []
    lower_title = title.lower()
    lower_desc = description.lower()

    if 'roof' in lower_title or 'gutter' in lower_title or 'ladder' in lower_title:
        tools += ['Ladder', 'Safety gloves']

    if 'detector' in lower_title or 'alarm' in lower_title:
        tools += ['9V or AA batteries (check detector type)', 'Step stool']

    if 'filter' in lower_title:
        tools += ['Replacement filter (note size)', 'Vacuum (optional, to clean area)']

    if 'gutter' in lower_title:
        tools += ['Gutter scoop or trowel', 'Garden hose', 'Bucket for debris', 'Work gloves']

    if 'hvac' in lower_title or 'furnace' in lower_title or 'air conditioning' in lower_title:
        tools += ['Replacement filter', 'Screwdriver', 'Flashlight']

    if 'plumb' in lower_desc or 'pipe' in lower_desc or 'leak' in lower_desc:
        tools += ['Flashlight', 'Towels or bucket', 'Adjustable wrench']

    if 'electrical' in lower_desc or 'outlet' in lower_desc or 'gfci' in lower_desc:
        tools += ['Outlet tester or lamp', 'Flashlight']

    if 'clean' in lower_title:
        tools += ['Cleaning supplies', 'Bucket and water', 'Clean rags or towels']

    if 'inspect' in lower_title and not tools:
        tools += ['Flashlight', 'Notepad for recording issues']

    return tools or list(DEFAULT_TOOLS)


def generate_task_content(title: str, description: str = None) -> Dict[str, object]:
    """
    Generate display content for a task.

    Args:
        title: Task title
        description: Task description (defaults to the title)

    Returns:
        Dict with action_summary, steps and tools_and_supplies
    """
    description = description or title
    return {
        'action_summary': generate_action_summary(title, description),
        'steps': generate_steps(title, description),
        'tools_and_supplies': generate_tools_and_supplies(title, description),
    }
