"""Typed DOM command set evaluated inside the audited page.

Every command is a self-contained function string that receives only
primitive arguments and returns JSON-serialisable data. Nothing here
captures host-side state.
"""

from __future__ import annotations

from playwright.async_api import Page


# QueryElements: metadata for every <button> or <input>, in document order.
QUERY_ELEMENTS_JS = """(kind) => {
    return [...document.querySelectorAll(kind)].map((el, index) => {
        if (kind === 'button') {
            return { index, text: (el.innerText || el.textContent || '').trim() };
        }
        return {
            index,
            type: el.getAttribute('type') || 'text',
            placeholder: el.getAttribute('placeholder') || 'No placeholder',
            value: el.value,
        };
    });
}"""

# ClickByIndex
CLICK_BY_INDEX_JS = """(index) => {
    const btn = document.querySelectorAll('button')[index];
    if (!btn) throw new Error(`button ${index} is no longer in the document`);
    btn.click();
}"""

# SetValueByIndex: returns the value read back after the input event.
SET_VALUE_BY_INDEX_JS = """([index, value]) => {
    const input = document.querySelectorAll('input')[index];
    if (!input) throw new Error(`input ${index} is no longer in the document`);
    input.value = value;
    input.dispatchEvent(new Event('input', { bubbles: true }));
    return input.value;
}"""

# ReadDocumentMetrics: structural accessibility counts.
READ_DOCUMENT_METRICS_JS = """() => {
    const report = {
        images: { total: 0, withAlt: 0 },
        headings: { total: 0, structure: [] },
        landmarks: { total: 0, types: {} },
        forms: { total: 0, withLabels: 0 },
        ariaElements: 0,
    };
    for (const img of document.querySelectorAll('img')) {
        report.images.total++;
        if (img.hasAttribute('alt')) report.images.withAlt++;
    }
    for (const h of document.querySelectorAll('h1, h2, h3, h4, h5, h6')) {
        report.headings.total++;
        report.headings.structure.push(h.tagName);
    }
    for (const el of document.querySelectorAll('main, nav, header, footer, aside, section, article')) {
        const tag = el.tagName.toLowerCase();
        report.landmarks.total++;
        report.landmarks.types[tag] = (report.landmarks.types[tag] || 0) + 1;
    }
    for (const form of document.querySelectorAll('form')) {
        report.forms.total++;
        const fields = form.querySelectorAll('input, select, textarea').length;
        if (form.querySelectorAll('label').length >= fields) report.forms.withLabels++;
    }
    for (const el of document.getElementsByTagName('*')) {
        if ([...el.attributes].some(a => a.name.startsWith('aria-'))) report.ariaElements++;
    }
    return report;
}"""

READ_FORMS_JS = """() => {
    const csrf = /csrf|xsrf|token|authenticity|nonce/i;
    return [...document.forms].map((form, index) => {
        const fields = [...form.querySelectorAll('input, select, textarea')]
            .filter(el => !['submit', 'button', 'reset', 'image'].includes((el.getAttribute('type') || '').toLowerCase()))
            .map(el => {
                const id = el.id;
                const hasLabel = !!((id && document.querySelector(`label[for="${CSS.escape(id)}"]`))
                    || el.closest('label') || el.hasAttribute('aria-label') || el.hasAttribute('aria-labelledby'));
                return {
                    tag: el.tagName.toLowerCase(),
                    type: (el.getAttribute('type') || el.tagName.toLowerCase()).toLowerCase(),
                    name: el.getAttribute('name') || '',
                    required: el.hasAttribute('required'),
                    pattern: el.getAttribute('pattern'),
                    minlength: el.getAttribute('minlength'),
                    maxlength: el.getAttribute('maxlength'),
                    min: el.getAttribute('min'),
                    max: el.getAttribute('max'),
                    autocomplete: el.getAttribute('autocomplete'),
                    has_label: hasLabel,
                };
            });
        const hidden = [...form.querySelectorAll('input[type="hidden"]')];
        return {
            index,
            id: form.id || null,
            name: form.getAttribute('name'),
            action: form.getAttribute('action') || '',
            method: (form.getAttribute('method') || 'get').toLowerCase(),
            fields,
            has_csrf_token: hidden.some(el => csrf.test(el.getAttribute('name') || '')),
            has_submit_button: !!form.querySelector('button:not([type]), button[type="submit"], input[type="submit"], input[type="image"]'),
        };
    });
}"""

READ_PWA_SIGNALS_JS = """async (timeoutMs) => {
    const link = document.querySelector('link[rel="manifest"]');
    let manifest = null;
    if (link && link.href) {
        const ctrl = new AbortController();
        const timer = setTimeout(() => ctrl.abort(), timeoutMs);
        try {
            const resp = await fetch(link.href, { signal: ctrl.signal });
            manifest = resp.ok ? await resp.json() : null;
        } catch (e) { manifest = null; }
        finally { clearTimeout(timer); }
    }
    let registrations = 0;
    const swSupported = 'serviceWorker' in navigator;
    if (swSupported) {
        try { registrations = (await navigator.serviceWorker.getRegistrations()).length; } catch (e) {}
    }
    return {
        hasManifestLink: !!link,
        manifest,
        swSupported,
        registrations,
        appleTouchIcon: !!document.querySelector('link[rel="apple-touch-icon"], link[rel="apple-touch-icon-precomposed"]'),
        meta: {
            viewport: !!document.querySelector('meta[name="viewport"]'),
            theme_color: !!document.querySelector('meta[name="theme-color"]'),
            apple_mobile_web_app_capable: !!document.querySelector('meta[name="apple-mobile-web-app-capable"]'),
        },
        https: location.protocol === 'https:',
    };
}"""

HAS_RENDERED_CONTENT_JS = """() => {
    const body = document.body;
    return !!body && (body.innerText || '').trim().length > 0;
}"""

READ_LINKS_JS = """() => {
    const links = [];
    for (const a of document.querySelectorAll('a[href]')) {
        try {
            const url = new URL(a.getAttribute('href'), document.baseURI);
            if (url.protocol === 'http:' || url.protocol === 'https:') {
                url.hash = '';
                links.push(url.href);
            }
        } catch (e) {}
    }
    return links;
}"""

# Document checks used when scoring categories without Lighthouse.
READ_PAGE_CHECKS_JS = """() => {
    const fields = [...document.querySelectorAll('input:not([type="hidden"]):not([type="submit"]):not([type="button"]), select, textarea')];
    const labelled = fields.filter(el => (el.id && document.querySelector(`label[for="${CSS.escape(el.id)}"]`))
        || el.closest('label') || el.hasAttribute('aria-label') || el.hasAttribute('aria-labelledby'));
    const imgs = [...document.images];
    return {
        accessibility: {
            image_alt: imgs.length === 0 || imgs.every(i => i.hasAttribute('alt')),
            form_labels: fields.length === labelled.length,
            html_lang: !!document.documentElement.lang,
            document_title: !!document.title.trim(),
            single_h1: document.querySelectorAll('h1').length === 1,
        },
        best_practices: {
            https: location.protocol === 'https:',
            doctype: !!document.doctype,
            charset: !!document.querySelector('meta[charset], meta[http-equiv="Content-Type" i]'),
            no_document_write: !window.__webaudit_document_write,
        },
        seo: {
            title: !!document.title.trim(),
            meta_description: !!(document.querySelector('meta[name="description"]')?.content || '').trim(),
            h1: !!document.querySelector('h1'),
            viewport: !!document.querySelector('meta[name="viewport"]'),
            html_lang: !!document.documentElement.lang,
            canonical: !!document.querySelector('link[rel="canonical"]'),
        },
    };
}"""


async def query_elements(page: Page, kind: str) -> list[dict]:
    return await page.evaluate(QUERY_ELEMENTS_JS, kind)


async def click_by_index(page: Page, index: int) -> None:
    await page.evaluate(CLICK_BY_INDEX_JS, index)


async def set_value_by_index(page: Page, index: int, value: str) -> str:
    return await page.evaluate(SET_VALUE_BY_INDEX_JS, [index, value])


async def read_document_metrics(page: Page) -> dict:
    return await page.evaluate(READ_DOCUMENT_METRICS_JS)
