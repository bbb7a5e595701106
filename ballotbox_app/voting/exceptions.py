class VotingError(Exception):
    """Base class for failures of the voting core.

    Each subclass carries the message shown to the person who triggered it, so
    views never have to fall back to a generic error for a known failure.
    """

    user_message = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


class VoterNotFoundError(VotingError):
    user_message = "Voter not found. Please sign in again."


class AlreadyVotedError(VotingError):
    user_message = "You have already voted."


class VotingClosedError(VotingError):
    user_message = "Voting has closed."


class CandidateNotFoundError(VotingError):
    user_message = "Candidate not found. Please refresh the candidate list."


class VoteConflictError(VotingError):
    # Transient: the whole cast_vote call may be retried once.
    user_message = "Your vote could not be recorded right now. Please try again."
