class RenderError(Exception):
    """Certificate rendering could not start; nothing was produced."""

    code = 'render_failed'


class MissingTemplate(RenderError):
    code = 'missing_template'


class MissingStudent(RenderError):
    code = 'missing_student'


class TemplateNotRenderable(RenderError):
    """The template is a stored file; callers should hand out its file instead."""

    code = 'template_not_renderable'
