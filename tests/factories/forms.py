"""
Form payload factories.

Generates request bodies for the form management endpoints.
"""

import factory
from faker import Faker

fake = Faker()


class QuestionPayloadFactory(factory.Factory):
    """
    Factory for one question in a create/update body.

    Usage:
        question = QuestionPayloadFactory()
        question = QuestionPayloadFactory(question_type="RATING")
    """

    class Meta:
        model = dict

    question_text = factory.LazyFunction(lambda: fake.sentence(nb_words=6).rstrip(".") + "?")
    question_type = "TEXT"
    is_required = False
    order_index = factory.Sequence(lambda n: n)


class FormPayloadFactory(factory.Factory):
    """
    Factory for a form create body with a text and a rating question.

    Usage:
        payload = FormPayloadFactory()
        payload = FormPayloadFactory(title="Q4 Survey!!")
    """

    class Meta:
        model = dict

    title = factory.LazyFunction(lambda: fake.catch_phrase()[:60])
    description = factory.LazyFunction(fake.sentence)
    questions = factory.LazyFunction(
        lambda: [
            QuestionPayloadFactory(
                question_text="What did you think?",
                question_type="TEXTAREA",
                is_required=True,
                order_index=0,
            ),
            QuestionPayloadFactory(
                question_text="How would you rate us?",
                question_type="RATING",
                order_index=1,
            ),
        ]
    )
