"""
Email Classifier - Rule-based categorization for inbound emails.

Scores every active category rule against an email:
- keyword found in subject/body/snippet (substring, case-insensitive): +2
- regex pattern matching anywhere in that content: +3
- domain substring found in the sender address: +4
- fixed heuristic phrase boosts on top (see HEURISTIC_* tables)

The highest score wins, ties go to the first rule in the supplied order.
Confidence is min(score / 10, 1).
"""

import re
import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Pattern

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 2
PATTERN_WEIGHT = 3
DOMAIN_WEIGHT = 4
HEURISTIC_WEIGHT = 3
CONFIDENCE_DIVISOR = 10

UNCATEGORIZED = 'uncategorized'

CATEGORY_LABELS = {
    'complaint': 'Complaint',
    'quote': 'Quote',
    'product_info': 'Product Information',
    'support': 'Support',
    'sales': 'Sales',
    UNCATEGORIZED: 'Uncategorized',
    'sem_categoria': 'Sem Categoria',
}


class CategoryRule:
    """A named category with keyword, pattern and sender-domain matchers."""

    def __init__(self, name: str, keywords: Iterable[str] = (), patterns: Iterable[Any] = (),
                 domains: Iterable[str] = (), color: str = '#3B82F6', active: bool = True,
                 description: str = ''):
        self.name = name
        self.keywords = [k.lower() for k in keywords if isinstance(k, str) and k]
        self.patterns = [_compile(p) for p in patterns]
        self.domains = [d.lower() for d in domains if isinstance(d, str) and d]
        self.color = color
        self.active = active
        self.description = description

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CategoryRule':
        return cls(
            name=data['name'],
            keywords=data.get('keywords') or [],
            patterns=data.get('patterns') or [],
            domains=data.get('domains') or [],
            color=data.get('color') or '#3B82F6',
            active=data.get('active', True),
            description=data.get('description') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'keywords': list(self.keywords),
            'patterns': [p.pattern for p in self.patterns],
            'domains': list(self.domains),
            'color': self.color,
            'active': self.active,
        }

    def __repr__(self):
        return f"CategoryRule({self.name!r}, active={self.active})"


class ClassificationResult(NamedTuple):
    category: str
    confidence: float
    scores: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'confidence': self.confidence,
            'scores': dict(self.scores),
        }


def _compile(pattern: Any) -> Pattern:
    if hasattr(pattern, 'search'):
        return pattern
    return re.compile(pattern, re.IGNORECASE)


def _text(email: Any, *names: str) -> str:
    """Read the first present field of a dict or object, anything non-string reads as ''."""
    for name in names:
        if isinstance(email, dict):
            value = email.get(name)
        else:
            value = getattr(email, name, None)
        if value is not None:
            return value if isinstance(value, str) else ''
    return ''


# =============================================================================
# HEURISTIC BOOSTS
# =============================================================================
# These reference fixed category names. When a rule set has no category with
# that name the boost is dropped without error.

COMPLAINT_INDICATORS = [
    'não funciona',
    'com problema',
    'está quebrado',
    'não está funcionando',
    'péssimo atendimento',
    'muito ruim',
]

CURRENCY_PATTERN = re.compile(r'r\$\s*\d+')

QUOTE_PHRASES = ['quanto custa', 'valor do produto']
PRODUCT_INFO_PHRASES = ['especificações técnicas', 'ficha técnica', 'como funciona', 'mais detalhes']
SALES_PHRASES = ['gostaria de comprar', 'fazer pedido', 'está disponível']
SUPPORT_PHRASES = ['preciso de ajuda', 'como usar', 'não sei como']


def _boost(scores: Dict[str, int], category: str, amount: int = HEURISTIC_WEIGHT):
    if category in scores:
        scores[category] += amount


def apply_heuristics(subject: str, body: str, scores: Dict[str, int]):
    """Layer the hand-tuned phrase boosts over the rule scores (subject + body only)."""
    content = f"{subject} {body}".lower()

    # One boost per indicator found
    for indicator in COMPLAINT_INDICATORS:
        if indicator in content:
            _boost(scores, 'complaint')

    if CURRENCY_PATTERN.search(content) or any(p in content for p in QUOTE_PHRASES):
        _boost(scores, 'quote')

    if any(p in content for p in PRODUCT_INFO_PHRASES):
        _boost(scores, 'product_info')

    if any(p in content for p in SALES_PHRASES):
        _boost(scores, 'sales')

    if any(p in content for p in SUPPORT_PHRASES):
        _boost(scores, 'support')


# =============================================================================
# CLASSIFIER
# =============================================================================

class EmailClassifier:
    """Stateless scorer; safe to share between threads."""

    def __init__(self, uncategorized_label: str = UNCATEGORIZED):
        self.uncategorized_label = uncategorized_label

    def classify(self, email: Any, rules: Iterable[Any]) -> ClassificationResult:
        """
        Classify one email against the supplied rules.

        Args:
            email: dict or object with subject, from/sender, body, snippet
            rules: CategoryRule instances (or dicts); inactive ones are ignored

        Returns:
            ClassificationResult(category, confidence, scores)
        """
        active_rules = [r for r in _as_rules(rules) if r.active]

        subject = _text(email, 'subject')
        body = _text(email, 'body')
        snippet = _text(email, 'snippet')
        content = f"{subject} {body} {snippet}".lower()
        sender = _text(email, 'from', 'sender', 'from_address').lower()

        scores = {rule.name: 0 for rule in active_rules}

        for rule in active_rules:
            for keyword in rule.keywords:
                if keyword in content:
                    scores[rule.name] += KEYWORD_WEIGHT

            for pattern in rule.patterns:
                if pattern.search(content):
                    scores[rule.name] += PATTERN_WEIGHT

            for domain in rule.domains:
                if domain in sender:
                    scores[rule.name] += DOMAIN_WEIGHT

        apply_heuristics(subject, body, scores)

        max_score = max(scores.values(), default=0)
        if max_score == 0:
            return ClassificationResult(self.uncategorized_label, 0.0, scores)

        # dicts keep insertion order, so this is the first rule at the max
        best_category = next(name for name, score in scores.items() if score == max_score)
        confidence = min(max_score / CONFIDENCE_DIVISOR, 1.0)

        logger.info(f'Email "{subject}" categorized as "{best_category}" with confidence {confidence:.2f}')
        return ClassificationResult(best_category, confidence, scores)

    def classify_many(self, emails: Iterable[Any], rules: Iterable[Any]) -> List[ClassificationResult]:
        """Classify each email independently, results in input order."""
        emails = list(emails)
        rules = _as_rules(rules)
        logger.info(f"Starting categorization of {len(emails)} emails")

        results = [self.classify(email, rules) for email in emails]

        logger.info(f"Categorization summary: {summarize(results)}")
        return results

    def get_category_label(self, category: Optional[str]) -> str:
        if category in CATEGORY_LABELS:
            return CATEGORY_LABELS[category]
        return CATEGORY_LABELS.get(self.uncategorized_label, 'Uncategorized')


def _as_rules(rules: Iterable[Any]) -> List[CategoryRule]:
    return [r if isinstance(r, CategoryRule) else CategoryRule.from_dict(r) for r in rules or []]


def summarize(results: Iterable[ClassificationResult]) -> Dict[str, int]:
    """Count results per category. Informational only."""
    summary: Dict[str, int] = {}
    for result in results:
        summary[result.category] = summary.get(result.category, 0) + 1
    return summary


# =============================================================================
# LEGACY RULE TABLE
# =============================================================================
# Seeded into the categories table on first start and used directly when no
# database is configured.

DEFAULT_CATEGORY_RULES = [
    {
        'name': 'complaint',
        'description': 'Complaints about defects, failures or poor service',
        'color': '#EF4444',
        'keywords': ['reclamação', 'reclamar', 'problema', 'defeito', 'erro', 'falha',
                     'insatisfação', 'ruim', 'péssimo', 'horrível'],
        'patterns': [
            r'\b(problema|defeito|erro|falha)\b',
            r'\b(reclamação|reclamar|insatisfação)\b',
            r'\b(ruim|péssimo|horrível|terrível)\b',
            r'não funciona',
            r'não está funcionando',
        ],
        'domains': [],
    },
    {
        'name': 'quote',
        'description': 'Quotation and price requests',
        'color': '#10B981',
        'keywords': ['orçamento', 'cotação', 'preço', 'valor', 'custo', 'proposta',
                     'estimativa', 'quanto custa'],
        'patterns': [
            r'\b(orçamento|cotação|preço|valor)\b',
            r'\b(proposta|estimativa|custo)\b',
            r'quanto custa',
            r'valor.*do.*produto',
            r'preço.*de',
        ],
        'domains': [],
    },
    {
        'name': 'product_info',
        'description': 'Questions about products and how they work',
        'color': '#3B82F6',
        'keywords': ['informações', 'detalhes', 'especificação', 'características', 'manual',
                     'como usar', 'funciona', 'dúvida'],
        'patterns': [
            r'\b(informações|detalhes|especificação)\b',
            r'\b(características|manual|como.*usar)\b',
            r'\b(funciona|dúvida|pergunta)\b',
            r'mais.*informações',
            r'gostaria.*de.*saber',
        ],
        'domains': [],
    },
    {
        'name': 'support',
        'description': 'Requests for help and assistance',
        'color': '#F59E0B',
        'keywords': ['suporte', 'ajuda', 'assistência', 'tutorial', 'guia', 'documentação',
                     'como fazer'],
        'patterns': [
            r'\b(suporte|ajuda|assistência)\b',
            r'\b(tutorial|guia|documentação)\b',
            r'como.*fazer',
            r'preciso.*de.*ajuda',
            r'pode.*me.*ajudar',
        ],
        'domains': [],
    },
    {
        'name': 'sales',
        'description': 'Purchase intent and orders',
        'color': '#8B5CF6',
        'keywords': ['comprar', 'venda', 'pedido', 'encomenda', 'interesse', 'adquirir',
                     'disponibilidade'],
        'patterns': [
            r'\b(comprar|venda|pedido|encomenda)\b',
            r'\b(interesse|adquirir|disponibilidade)\b',
            r'gostaria.*de.*comprar',
            r'tenho.*interesse',
            r'está.*disponível',
        ],
        'domains': [],
    },
]


def get_default_rules() -> List[CategoryRule]:
    return [CategoryRule.from_dict(data) for data in DEFAULT_CATEGORY_RULES]


_default_classifier = EmailClassifier()


def classify(email: Any, rules: Iterable[Any]) -> ClassificationResult:
    return _default_classifier.classify(email, rules)


def classify_many(emails: Iterable[Any], rules: Iterable[Any]) -> List[ClassificationResult]:
    return _default_classifier.classify_many(emails, rules)
