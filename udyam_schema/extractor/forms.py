"""Form snapshot capture from an already-open page."""
import logging
from typing import Any, Mapping, Optional, Sequence

from playwright.sync_api import Page

from .models import AttributeHints, PageSnapshot, RawElement

logger = logging.getLogger(__name__)

SNAPSHOT_SCRIPT = """
({ keywords }) => {
    const elements = [];
    const hints = {};

    function getLabel(el) {
        if (el.id) {
            const label = document.querySelector(`label[for="${el.id}"]`);
            if (label) return label.textContent.trim();
        }
        const parentLabel = el.closest('label');
        if (parentLabel) return parentLabel.textContent.trim();
        if (el.getAttribute('aria-label')) return el.getAttribute('aria-label');
        const parent = el.parentElement;
        if (parent) {
            const texts = Array.from(parent.childNodes)
                .filter(node => node.nodeType === Node.TEXT_NODE)
                .map(node => node.textContent.trim())
                .filter(text => text.length > 0);
            if (texts.length > 0) return texts[0];
        }
        if (el.tagName === 'BUTTON') return el.textContent.trim();
        return '';
    }

    function mentionsKeyword(el) {
        if (!keywords.length) return true;
        const own = el.outerHTML.toLowerCase();
        const parent = el.parentElement ? el.parentElement.outerHTML.toLowerCase() : '';
        return keywords.some(kw => own.includes(kw) || parent.includes(kw));
    }

    const controls = document.querySelectorAll('input, select, textarea, button');

    controls.forEach(el => {
        const rect = el.getBoundingClientRect();
        const visible = rect.width > 0 && rect.height > 0
            && window.getComputedStyle(el).display !== 'none';

        if (!visible && el.type !== 'hidden') return;
        if (!mentionsKeyword(el)) return;

        const element = {
            identifier: el.id || '',
            name: el.name || '',
            elementKind: el.type || el.tagName.toLowerCase(),
            tagKind: el.tagName.toLowerCase(),
            cssClasses: typeof el.className === 'string' ? el.className : '',
            placeholder: el.placeholder || '',
            isRequired: el.required || el.getAttribute('aria-required') === 'true',
            isDisabled: !!el.disabled,
            currentValue: el.value || '',
            associatedLabel: getLabel(el),
        };

        if (el.tagName === 'SELECT') {
            element.options = Array.from(el.options).map(o => ({
                value: o.value,
                text: o.textContent.trim(),
            }));
        }

        const key = el.id || el.name;
        if (key) {
            hints[key] = {
                pattern: el.getAttribute('pattern') || null,
                minLength: typeof el.minLength === 'number' ? el.minLength : null,
                maxLength: typeof el.maxLength === 'number' ? el.maxLength : null,
                title: el.getAttribute('title') || null,
            };
        }

        elements.push(element);
    });

    const scripts = Array.from(document.querySelectorAll('script'))
        .map(s => s.textContent || '')
        .filter(text => text.trim().length > 0);

    return { elements, hints, scripts };
}
"""


class FormSnapshotExtractor:
    """Captures the visible form controls of a page, step by step.

    The page is owned by the caller: it must already show the form. This
    class only evaluates a read-only script on it.
    """

    def __init__(self, page: Page) -> None:
        """Initialize snapshot extractor.

        Args:
            page: Playwright page showing the registration form.
        """
        self._page = page

    def capture(
        self,
        steps: Sequence[str],
        step_keywords: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> PageSnapshot:
        """Capture a snapshot of each step.

        Steps without keywords receive every visible control. Steps with
        keywords receive only controls whose markup, or their parent's,
        mentions one of them. That separation is a best-effort heuristic
        for pages that render all steps at once.

        Args:
            steps: Step names in order.
            step_keywords: Optional keywords per step name.

        Returns:
            PageSnapshot usable as the hint provider of a run.
        """
        step_keywords = step_keywords or {}
        snapshot = PageSnapshot(url=self._page.url, title=self._page.title())

        for step_name in steps:
            keywords = [kw.lower() for kw in step_keywords.get(step_name, [])]
            logger.info(f"Capturing form controls for {step_name}...")
            result = self._page.evaluate(SNAPSHOT_SCRIPT, {"keywords": keywords})
            self._merge(snapshot, step_name, result or {})
            logger.info(f"Captured {len(snapshot.steps[step_name])} controls for {step_name}")

        return snapshot

    def _merge(self, snapshot: PageSnapshot, step_name: str, result: dict[str, Any]) -> None:
        snapshot.steps[step_name] = [
            RawElement.model_validate(el) for el in result.get("elements", [])
        ]
        for key, hint in (result.get("hints") or {}).items():
            snapshot.hints.setdefault(key, AttributeHints.model_validate(hint))
        for script in result.get("scripts") or []:
            if script not in snapshot.scripts:
                snapshot.scripts.append(script)
