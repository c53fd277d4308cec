"""Cloud functions and triggers for the bujo journal.

Executed by the document store at startup with ``cloud`` in scope.
"""


@cloud.define("hello")
def hello(request):
    return f"Hello {request.params.get('name', 'world')}!"


@cloud.before_save("Entry")
def entry_defaults(request):
    if not request.object.get("text", "").strip():
        raise cloud.Error(142, "An entry needs some text.")
    request.object.setdefault("done", False)
