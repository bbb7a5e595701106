from django import forms


class VoteForm(forms.Form):
    candidate_id = forms.IntegerField(min_value=1)


class VotingDeadlineForm(forms.Form):
    # Blank/null clears the deadline (voting open indefinitely). Naive values
    # are interpreted in TIME_ZONE (UTC).
    deadline = forms.DateTimeField(required=False)


class CandidateForm(forms.Form):
    name = forms.CharField(max_length=255)
    bio = forms.CharField(required=False)
    image_url = forms.URLField(max_length=2048, required=False, assume_scheme="https")
    linkedin_url = forms.URLField(max_length=2048, required=False, assume_scheme="https")


class CandidateUpdateForm(CandidateForm):
    """Partial update: only the fields present in the payload are applied."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def changed_payload(self) -> dict[str, str]:
        provided = set(self.data.keys())
        return {name: value for name, value in self.cleaned_data.items() if name in provided}
