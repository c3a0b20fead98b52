#samlogin/classifier.py
"""Signature Classifier.

The login window is a web view with no automation ids, so the only thing we
can rely on is the *shape* of the form: how many edits, buttons, groups,
images and text labels sit directly under the document. That shape is the
ElementSignature, and SIGNATURE_RULES maps it to a LoginWindowState.

The rules are ordered data, first match wins. The counts were calibrated
against the layouts the client ships; when the client changes its login UI,
add or edit rows here rather than branching in classify().
"""

import logging
from dataclasses import dataclass

from samlogin.backends.base import Role
from samlogin.states import ElementSignature, LoginWindowState

logger = logging.getLogger(__name__)

# The shell draws a fixed two-element skeleton before the form loads.
LOADING_CHILD_COUNT = 2

ERROR_KEYWORDS = ("error", "problem")


class CountMatcher:
    def __init__(self, test, label):
        self._test = test
        self.label = label

    def __call__(self, value):
        return self._test(value)

    def __repr__(self):
        return self.label


def exactly(n):
    return CountMatcher(lambda v: v == n, f"=={n}")


def at_least(n):
    return CountMatcher(lambda v: v >= n, f">={n}")


ANY = CountMatcher(lambda v: True, "any")


def mentions_error(signature):
    for text in signature.texts:
        content = text.lower()
        if any(word in content for word in ERROR_KEYWORDS):
            return True
    return False


@dataclass(frozen=True)
class SignatureRule:
    state: LoginWindowState
    inputs: CountMatcher = ANY
    buttons: CountMatcher = ANY
    groups: CountMatcher = ANY
    images: CountMatcher = ANY
    texts: CountMatcher = ANY
    condition: object = None

    def matches(self, signature):
        if not (self.inputs(signature.inputs)
                and self.buttons(signature.buttons)
                and self.groups(signature.groups)
                and self.images(signature.images)
                and self.texts(signature.text_count)):
            return False
        return self.condition is None or bool(self.condition(signature))


SIGNATURE_RULES = (
    SignatureRule(LoginWindowState.ERROR, inputs=exactly(0), buttons=exactly(2),
                  images=exactly(1), texts=at_least(1), condition=mentions_error),
    SignatureRule(LoginWindowState.ERROR, buttons=exactly(1), images=exactly(1),
                  texts=exactly(2)),
    SignatureRule(LoginWindowState.SELECTION, inputs=exactly(0), buttons=at_least(1),
                  images=at_least(2), texts=exactly(0)),
    SignatureRule(LoginWindowState.CODE, inputs=exactly(0), buttons=exactly(5),
                  groups=exactly(0), images=exactly(3), texts=exactly(5)),
    SignatureRule(LoginWindowState.MOBILE_CONFIRMATION, inputs=exactly(0),
                  buttons=exactly(0), groups=exactly(0), images=exactly(3),
                  texts=exactly(7)),
    SignatureRule(LoginWindowState.LOGIN, inputs=exactly(2), buttons=exactly(1)),
)


def match_signature(signature, rules=SIGNATURE_RULES):
    """Returns the state of the first matching rule, INVALID when none match."""
    for rule in rules:
        if rule.matches(signature):
            return rule.state
    return LoginWindowState.INVALID


def build_signature(children):
    inputs = buttons = groups = images = 0
    texts = []
    for element in children:
        role = element.role
        if role is Role.EDIT:
            inputs += 1
        elif role is Role.BUTTON:
            buttons += 1
        elif role is Role.GROUP:
            groups += 1
        elif role is Role.IMAGE:
            images += 1
        elif role is Role.TEXT:
            texts.append(element.name or "")
    return ElementSignature(inputs=inputs, buttons=buttons, groups=groups,
                            images=images, texts=tuple(texts))


def find_document(session):
    root = session.root()
    if root is None:
        return None
    return root.find_first(Role.DOCUMENT)


class SignatureClassifier:
    def __init__(self, automation, journal=None, rules=SIGNATURE_RULES):
        self.automation = automation
        self.journal = journal
        self.rules = rules

    def classify(self, window):
        """
        Reads the login window and returns its LoginWindowState.
        Never raises: a missing window, a torn-down tree or any UIA failure
        all come back as INVALID.
        """
        if not window.is_valid:
            return LoginWindowState.INVALID

        try:
            with self.automation.attach(window) as session:
                root = session.root()
                if root is None:
                    return LoginWindowState.INVALID

                root.focus()

                document = root.find_first(Role.DOCUMENT)
                if document is None:
                    return LoginWindowState.INVALID

                children = document.children()
                if len(children) == 0:
                    return LoginWindowState.INVALID
                if len(children) == LOADING_CHILD_COUNT:
                    return LoginWindowState.LOADING

                signature = build_signature(children)
        except Exception as e:
            logger.warning("Could not read login window %r: %s", window, e)
            return LoginWindowState.INVALID

        logger.debug(signature.describe())
        state = match_signature(signature, self.rules)
        self._remember(signature, state)
        return state

    def _remember(self, signature, state):
        if self.journal is None:
            return
        try:
            self.journal.remember(signature, state)
        except Exception as e:
            logger.warning("Signature journal unavailable: %s", e)
