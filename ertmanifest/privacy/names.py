"""Person-name dictionary used by the value sniffer.

Frequent surnames from the US census surname tables, Quebec and Brazilian
registries, plus frequent given names in the same three populations. Entries
are stored folded (see :func:`ertmanifest.privacy.normalize.fold`).

Surnames that double as everyday categorical vocabulary (colours, directions,
ward/unit words, months) are left out on purpose; a race column holding
``White``/``Black`` must not read as a list of surnames.
"""

from __future__ import annotations

from ertmanifest.privacy.normalize import fold

_US_SURNAMES = """
smith johnson williams jones garcia miller davis rodriguez martinez hernandez
lopez gonzalez wilson anderson thomas taylor moore jackson martin lee perez
thompson harris sanchez clark ramirez lewis robinson allen scott
torres nguyen wright flores adams nelson baker hall rivera campbell mitchell
carter roberts gomez phillips evans turner diaz parker cruz edwards collins
reyes stewart morris morales murphy cook rogers gutierrez ortiz morgan cooper
peterson bailey reed kelly howard ramos kim cox richardson watson brooks
chavez sanders patel myers jimenez ruiz hughes gonzales bryant
alexander russell griffin mendoza sullivan henderson jenkins perry powell
coleman patterson fisher vasquez simmons romero reynolds hamilton
graham wallace sullivan castillo ellis harrison gibson mcdonald marshall
owens schmidt kennedy wells henry freeman hansen
"""

_QUEBEC_SURNAMES = """
tremblay gagnon roy cote bouchard gauthier morin lavoie fortin gagne ouellet
pelletier belanger levesque bergeron leblanc paquette girard simard boucher
caron beaulieu cloutier dube poirier fournier lapointe leclerc lefebvre
poulin thibault st-pierre nadeau mercier desjardins gaudreault lacroix
theriault gosselin bilodeau lemieux dufour hebert vachon charbonneau
"""

_BRAZIL_SURNAMES = """
silva santos oliveira souza rodrigues ferreira alves pereira gomes
ribeiro carvalho almeida lopes soares fernandes vieira barbosa rocha dias
nascimento andrade moreira nunes marques mendes araujo cardoso teixeira
cavalcanti azevedo pinto
"""

_GIVEN_NAMES = """
james john robert michael david william richard joseph charles christopher
daniel matthew anthony donald steven paul andrew joshua kenneth kevin brian
george timothy ronald edward jason jeffrey ryan jacob gary nicholas eric
jonathan stephen larry justin brandon benjamin samuel gregory frank
alexander raymond patrick jack dennis jerry tyler aaron henry douglas peter
mary patricia jennifer linda elizabeth barbara susan jessica sarah karen
lisa nancy betty margaret sandra ashley kimberly emily donna michelle carol
amanda dorothy melissa deborah stephanie rebecca sharon laura cynthia
kathleen helen shirley angela anna brenda pamela nicole samantha katherine
emma christine debra rachel catherine carolyn janet maria heather diane
julie joyce kelly christina lauren joan evelyn olivia
judith megan cheryl martha andrea frances hannah jacqueline gloria teresa
jean pierre jacques francois louis rene andre marcel claude yves denis
luc sylvain mathieu genevieve isabelle nathalie sylvie chantal josee
manon julie melanie veronique marie-claude jose joao antonio francisco
carlos paulo pedro lucas luiz marcos gabriel rafael ana francisca antonia
adriana juliana marcia fernanda patricia aline
"""


def _load(*blocks: str) -> frozenset[str]:
    return frozenset(fold(token) for block in blocks for token in block.split())


SURNAMES: frozenset[str] = _load(_US_SURNAMES, _QUEBEC_SURNAMES, _BRAZIL_SURNAMES)
GIVEN_NAMES: frozenset[str] = _load(_GIVEN_NAMES)
PERSON_NAMES: frozenset[str] = SURNAMES | GIVEN_NAMES
