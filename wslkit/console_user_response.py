def query_positive_negative(
        question_string: str,
        add_first_values_to_question: bool = True,
        positive_answers: list = None,
        negative_answers: list = None
) -> bool:
    """
    Ask for "yes" / "no" input to a question that is passed as a "question_string".
    Returns 'True' for 'positive' answers and 'False' for 'negative' answers.

    :param question_string: Question that user will be asked.
    :param add_first_values_to_question: Boolean that sets if ' [y/n]' string will be added to the question.
    :param positive_answers: A list of non default positive answers can be passed.
    :param negative_answers: A list of non default negative answers can be passed.
    :return: Boolean that depend, if user answered yes or no.
    """

    if not positive_answers:
        positive_answers = ['y', 'yes']
    if not negative_answers:
        negative_answers = ['n', 'no']

    if add_first_values_to_question:
        question_string = f'{question_string} [{positive_answers[0]}/{negative_answers[0]}]'

    while True:
        print(question_string)
        choice = input().strip().lower()

        if choice in positive_answers:
            return True
        elif choice in negative_answers:
            return False
        else:
            print("Please respond with either:", positive_answers, negative_answers)
