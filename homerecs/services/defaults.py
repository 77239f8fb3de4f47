"""Hand-curated default recommendations.

Served to users without signals and whenever every other tier fails. The
reserve refills slots left empty when a user has already read a default.
"""

from urllib.parse import quote

from homerecs.domain.books import (
    PADDING_REASON,
    RankedBook,
    RecommendationResult,
    UserSignals,
    assemble_result,
    make_variant,
    normalize_title,
)

STRATEGY_DEFAULTS = "fallback-defaults"

_PLACEHOLDER = "https://placehold.co/160x230/FFF4E4/3B2412?text="


def _book(
    external_id: str,
    title: str,
    author: str,
    category: str,
    description: str,
    reason: str,
    image: str | None = None,
) -> RankedBook:
    return RankedBook(
        external_id=external_id,
        title=title,
        authors=(author,),
        categories=("Fiction", category),
        description=description,
        image=image or _PLACEHOLDER + quote(title, safe=""),
        reason=reason,
    )


DEFAULT_LIKELY: tuple[RankedBook, ...] = (
    _book("DqIPAAAACAAJ", "El Señor de los Anillos", "J.R.R. Tolkien", "Fantasy",
          "Una épica aventura de fantasía que ha cautivado a generaciones de lectores.",
          "Clásico de fantasía épica"),
    _book("5PQEAAAAMAAJ", "1984", "George Orwell", "Dystopian",
          "Una distopía clásica que explora temas de vigilancia y control totalitario.",
          "Distopía clásica del siglo XX"),
    _book("hFfhrCWiLSMC", "Cien años de soledad", "Gabriel García Márquez", "Magical Realism",
          "Obra maestra del realismo mágico que narra la historia de la familia Buendía.",
          "Realismo mágico latinoamericano"),
    _book("4iMZAAAAYAAJ", "El Principito", "Antoine de Saint-Exupéry", "Philosophy",
          "Un cuento poético que aborda temas universales como el amor y la amistad.",
          "Fábula filosófica universal"),
    _book("7X2lYx8CfjIC", "Harry Potter y la piedra filosofal", "J.K. Rowling", "Fantasy",
          "El inicio de la saga que introdujo a millones de lectores al mundo de la magia.",
          "Fantasía juvenil contemporánea"),
    _book("YwFvEAAAQBAJ", "Orgullo y prejuicio", "Jane Austen", "Romance",
          "Una comedia romántica que satiriza la sociedad británica del siglo XIX.",
          "Romance clásico británico"),
    _book("8iMZAAAAYAAJ", "El Hobbit", "J.R.R. Tolkien", "Fantasy",
          "Una aventura fantástica que precede a El Señor de los Anillos.",
          "Aventura fantástica preludio"),
    _book("9iMZAAAAYAAJ", "Don Quijote de la Mancha", "Miguel de Cervantes", "Classic",
          "La primera novela moderna que parodia las novelas de caballerías.",
          "Primera novela moderna"),
    _book("1iMZAAAAYAAJ", "Los miserables", "Victor Hugo", "Historical",
          "Una epopeya que retrata la sociedad francesa del siglo XIX.",
          "Epopeya histórica francesa"),
    _book("2iMZAAAAYAAJ", "Madame Bovary", "Gustave Flaubert", "Realism",
          "Una novela realista que critica la sociedad burguesa francesa.",
          "Realismo literario francés"),
    _book("3iMZAAAAYAAJ", "Anna Karenina", "León Tolstói", "Realism",
          "Una tragedia romántica que explora temas de moral y sociedad.",
          "Realismo ruso del siglo XIX"),
    _book("0iMZAAAAYAAJ", "Crimen y castigo", "Fiódor Dostoyevski", "Psychological",
          "Una novela psicológica que explora la culpa y la redención.",
          "Novela psicológica rusa"),
)

DEFAULT_DISCOVER: tuple[RankedBook, ...] = (
    _book("5iMZAAAAYAAJ", "El nombre del viento", "Patrick Rothfuss", "Fantasy",
          "Una historia de formación mágica con un sistema de magia único.",
          "Fantasía contemporánea innovadora"),
    _book("6iMZAAAAYAAJ", "La sombra del viento", "Carlos Ruiz Zafón", "Mystery",
          "Una novela gótica ambientada en la Barcelona de posguerra.",
          "Misterio gótico español"),
    _book("7iMZAAAAYAAJ", "El código Da Vinci", "Dan Brown", "Thriller",
          "Un thriller que combina arte, religión y misterio histórico.",
          "Thriller histórico-artístico"),
    _book("17iMZAAAAYAAJ", "Los juegos del hambre", "Suzanne Collins", "Young Adult",
          "Una distopía que critica la sociedad del espectáculo.",
          "Distopía juvenil contemporánea"),
    _book("18iMZAAAAYAAJ", "El alquimista", "Paulo Coelho", "Philosophy",
          "Una fábula sobre la búsqueda del tesoro personal.",
          "Fábula filosófica brasileña"),
    _book("10iMZAAAAYAAJ", "La ladrona de libros", "Markus Zusak", "Historical",
          "Una historia conmovedora narrada por la Muerte durante la Segunda Guerra Mundial.",
          "Narrativa histórica única"),
    _book("11iMZAAAAYAAJ", "El curioso incidente del perro a medianoche", "Mark Haddon", "Mystery",
          "Una novela única narrada desde la perspectiva de un joven con autismo.",
          "Misterio con perspectiva única"),
    _book("12iMZAAAAYAAJ", "La vida de Pi", "Yann Martel", "Adventure",
          "Una historia de supervivencia que cuestiona la realidad y la fe.",
          "Aventura filosófica"),
    _book("13iMZAAAAYAAJ", "El guardián entre el centeno", "J.D. Salinger", "Coming of Age",
          "Un clásico de la literatura juvenil que retrata la alienación adolescente.",
          "Coming of age clásico"),
    _book("14iMZAAAAYAAJ", "Fahrenheit 451", "Ray Bradbury", "Science Fiction",
          "Una distopía que critica la censura y la sociedad del entretenimiento.",
          "Ciencia ficción distópica"),
    _book("15iMZAAAAYAAJ", "El retrato de Dorian Gray", "Oscar Wilde", "Gothic",
          "Una novela gótica que explora temas de belleza, moralidad y decadencia.",
          "Gótico victoriano"),
    _book("16iMZAAAAYAAJ", "Rebelión en la granja", "George Orwell", "Allegory",
          "Una sátira política que critica el totalitarismo a través de una fábula animal.",
          "Alegoría política animal"),
)

DEFAULT_RESERVE: tuple[RankedBook, ...] = (
    _book("19iMZAAAAYAAJ", "El Gran Gatsby", "F. Scott Fitzgerald", "Classic",
          "Un retrato del sueño americano y sus excesos en la era del jazz.",
          "Clásico de la literatura estadounidense"),
    _book("20iMZAAAAYAAJ", "Matar a un ruiseñor", "Harper Lee", "Classic",
          "Una mirada a la injusticia racial a través de los ojos de una niña.",
          "Clásico sobre justicia y empatía"),
    _book("21iMZAAAAYAAJ", "Rayuela", "Julio Cortázar", "Experimental",
          "Una novela que puede leerse en distintos órdenes.",
          "Experimento narrativo latinoamericano"),
    _book("22iMZAAAAYAAJ", "Ficciones", "Jorge Luis Borges", "Short Stories",
          "Cuentos sobre laberintos, bibliotecas infinitas y espejos.",
          "Cuentos fantásticos esenciales"),
    _book("23iMZAAAAYAAJ", "Pedro Páramo", "Juan Rulfo", "Magical Realism",
          "Un viaje a un pueblo habitado por murmullos y fantasmas.",
          "Precursor del realismo mágico"),
    _book("24iMZAAAAYAAJ", "Frankenstein", "Mary Shelley", "Gothic",
          "La criatura y su creador en la novela fundacional de la ciencia ficción.",
          "Gótico fundacional"),
)


def _unknown(books: tuple[RankedBook, ...], signals: UserSignals | None) -> list[RankedBook]:
    if signals is None:
        return list(books)
    titles = signals.known_titles
    return [
        b for b in books
        if b.external_id not in signals.known_ids and normalize_title(b.title) not in titles
    ]


def default_fill(signals: UserSignals | None = None) -> list[RankedBook]:
    """Every curated book the user does not already know, in catalog order."""
    return _unknown(DEFAULT_LIKELY + DEFAULT_DISCOVER + DEFAULT_RESERVE, signals)


def default_result(
    user_id: int | str,
    strategy: str = STRATEGY_DEFAULTS,
    signals: UserSignals | None = None,
    shortlist_size: int = 0,
) -> RecommendationResult:
    """The Default Catalog as a result, minus books the user already knows."""
    excluded = signals.known_ids if signals is not None else frozenset()
    fill = default_fill(signals)
    if not fill:
        # Every curated book is known; serve flagged variants instead.
        taken = set(excluded)
        for book in DEFAULT_LIKELY + DEFAULT_DISCOVER:
            variant = make_variant(book, taken, PADDING_REASON)
            taken.add(variant.external_id)
            fill.append(variant)
    return assemble_result(
        user_id=user_id,
        strategy=strategy,
        shortlist_size=shortlist_size,
        likely=_unknown(DEFAULT_LIKELY, signals),
        discover=_unknown(DEFAULT_DISCOVER, signals),
        fill=fill,
        excluded_ids=excluded,
    )
